
from setuptools import setup, find_packages

setup(
    name="quark-extensions",
    version="0.1.0",
    packages=find_packages(include=["quark", "quark.*"]),
    py_modules=["main"],
    install_requires=[
        "pydantic>=2",
        "python-dotenv",
        "click",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "quark=quark.cli.cli:main",
        ],
    },
)
