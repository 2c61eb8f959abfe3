import marimo

__generated_with = "0.18.3"
app = marimo.App()


@app.cell
def _():
    import tempfile
    from pathlib import Path

    import gitlet
    from IPython.lib.pretty import pprint
    return Path, gitlet, pprint, tempfile


@app.cell
def _(Path, gitlet, tempfile):
    work_path = Path(tempfile.mkdtemp())
    r = gitlet.create_repository(work_path)
    return r, work_path


@app.cell
def _(pprint, r):
    pprint(r)
    return


@app.cell
def _(r, work_path):
    (work_path / "f.txt").write_text("wug")
    r.add("f.txt")
    return


@app.cell
def _(pprint, r):
    pprint(r.current_branch)
    return


@app.cell
def _(r):
    r.commit("added wug")
    r.save()
    return


@app.cell
def _(r):
    print(r.log())
    return


@app.cell
def _(r):
    print(r.status())
    return


if __name__ == "__main__":
    app.run()
