from setuptools import setup, find_packages

setup(
    name="cloud-sync",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    install_requires=[
        "loguru",
        "sqlalchemy>=2.0",
        "pymysql",
        "psycopg2-binary",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
