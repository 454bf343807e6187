import pathlib

from setuptools import find_packages, setup


def get_version():
    """Gets the exbn version."""
    path = CWD / "exbn" / "__init__.py"
    content = path.read_text()

    for line in content.splitlines():
        if line.startswith("__version__"):
            return line.strip().split()[-1].strip().strip('"')
    raise RuntimeError("bad version data in __init__.py")


CWD = pathlib.Path(__file__).absolute().parent


setup(
    name="exbn",
    version=get_version(),
    description="Exact inference on discrete Bayesian networks by joint enumeration",
    long_description=(CWD / "README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "exbn": ["configs/inference/*.yaml", "data/*.bif"],
    },
    python_requires=">=3.10",
    install_requires=[
        "torch",
        "networkx",
        "numpy",
        "pandas",
        "pyyaml",
        "tqdm",
    ],
    extras_require={
        "plots": ["matplotlib"],
        "test": ["pytest", "matplotlib"],
    },
    entry_points={
        "console_scripts": [
            "exbn=exbn.cli:main",
        ],
    },
    include_package_data=True,
)
