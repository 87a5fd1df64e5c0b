[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "emirt"
version = "0.1.0"
description = "Expectation-maximization update steps for item response theory models: binary, ordinal, dynamic, hierarchical, Poisson and endorsement."
requires-python = ">=3.10"
keywords = ["item response theory", "IRT", "EM algorithm", "ideal points", "Kalman smoother", "statistics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
    "numpy",
]

[tool.hatch.build.targets.wheel]
packages = ["emirt"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
