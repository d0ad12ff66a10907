[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "varquery"
version = "0.1.0"
description = "Filter annotated sequence variants against case queries: genotype, quality, frequency, consequence, gene and region criteria."
requires-python = ">=3.10"
dependencies = []
keywords = ["genomics", "variants", "vcf", "filtering", "bioinformatics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["varquery"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
