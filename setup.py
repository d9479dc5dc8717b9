from setuptools import find_packages, setup

setup(
    name="dissect.mdstat",
    version="1.0.0",
    description="A Dissect module implementing a parser for the Linux MD RAID status report (/proc/mdstat)",
    packages=list(map(lambda v: "dissect." + v, find_packages("dissect"))),
    python_requires=">=3.9",
    install_requires=[],
    extras_require={
        "test": [
            "pytest",
        ],
    },
)
