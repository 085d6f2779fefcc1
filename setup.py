from setuptools import setup, find_packages


with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="dftree",
    version="0.1.0",
    description="Dynamic fault tree modeling, SHyFTA export and Monte Carlo convergence analysis.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"dftree.schemas": ["*.json"], "dftree.templates": ["*.m"]},
    python_requires=">=3.10",
    install_requires=["networkx", "numpy", "pyyaml", "jsonschema"],
    extras_require={"test": ["pytest"]},
    tests_require=["pytest"],
    entry_points={"console_scripts": ["dftree=dftree.cli:main"]},
)
