import setuptools
from setuptools import find_packages

with open("readme.md", "r") as fh:
    long_description = fh.read()


vars2find = ["__author__", "__version__"]
vars2readme = {}
with open("./nano_shardbackup/__init__.py") as f:
    for line in f.readlines():
        for v in vars2find:
            if line.startswith(v):
                line = line.replace('"', "").replace("'", "").strip()
                vars2readme[v] = line.split("=", 1)[1].strip()

core_deps = [
    "pydantic>=2.0",
    "xxhash",
    "tenacity",
    "aioboto3",
    "botocore",
]

setuptools.setup(
    name="nano-shardbackup",
    version=vars2readme["__version__"],
    author=vars2readme["__author__"],
    description="Incremental, deduplicated backup of search-index shards",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=core_deps,
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
)
