from typing import Any, Callable

from loguru import logger
from sqlalchemy import Engine, LargeBinary, String, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from gitlet.base import Blob, ContentStore
from gitlet.errors import NotFoundError
from gitlet.hashing import blob_digest


class Base(DeclarativeBase):
    pass


class BlobModel(Base):
    __tablename__ = "blobs"
    digest: Mapped[str] = mapped_column(String(40), primary_key=True)
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


class SqlContentStore(ContentStore):
    def __init__(
        self, session_maker: Callable[[], Session], engine: Engine | None = None
    ) -> None:
        self.session_maker = session_maker
        self.engine = engine

    def _repr_pretty_(self, p: Any, cycle: bool) -> None:
        if cycle:
            p.text("SqlContentStore(...)")
        else:
            with p.group(4, "SqlContentStore(", ")"):
                p.breakable()
                p.text(f"engine={self.engine},")
                p.breakable()

    def put(self, content: Blob, context: str | None = None) -> str:
        digest = blob_digest(content, context)
        with self.session_maker() as session:
            stmt = select(BlobModel.digest).where(BlobModel.digest == digest)
            if session.execute(stmt).scalar_one_or_none() is None:
                session.add(BlobModel(digest=digest, content=bytes(content)))
                session.commit()
                logger.debug(f"Stored object {digest[:6]} ({len(content)} bytes)")
        return digest

    def get(self, digest: str) -> Blob:
        with self.session_maker() as session:
            blob = session.get(BlobModel, digest)
            if blob is None:
                raise NotFoundError(f"No object with id {digest}.")
            return blob.content

    def contains(self, digest: str) -> bool:
        with self.session_maker() as session:
            stmt = select(BlobModel.digest).where(BlobModel.digest == digest)
            return session.execute(stmt).scalar_one_or_none() is not None

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()


def create_sql_content_store(session_maker: Callable[[], Session]) -> ContentStore:
    return SqlContentStore(session_maker)


def create_sql_content_store_from_url(db_url: str) -> ContentStore:
    engine = create_engine(db_url)
    Base.metadata.create_all(engine)
    return SqlContentStore(sessionmaker(bind=engine), engine=engine)
