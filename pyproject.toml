[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quadctrl"
version = "0.1.0"
description = "Quadruped control building blocks: a dense QP solver, rotation and statistics helpers, a Kalman state estimator, operator input handling and signal recording."
requires-python = ">=3.10"
keywords = [
    "quadruped",
    "legged robot",
    "quadratic programming",
    "Goldfarb-Idnani",
    "Kalman filter",
    "state estimation",
    "robotics",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
    "matplotlib",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["quadctrl"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
