from invoke import task


@task
def lint(c):
    c.run("ruff check src tests")


@task
def format_check(c):
    c.run("ruff format --check src tests")


@task
def fmt(c):
    c.run("ruff format src tests")
    c.run("ruff check --fix src tests")


@task
def test(c, k=None):
    c.run(f"pytest -k {k!r}" if k else "pytest")


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)
