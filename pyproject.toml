[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "todoauth"
version = "0.1.0"
description = "JSON HTTP backend for a to-do application with cookie-based JWT authentication and MongoDB storage"
requires-python = ">=3.10"
keywords = ["todo", "jwt", "authentication", "flask", "mongodb", "rest"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask",
    "pymongo",
    "pyjwt",
    "bcrypt",
    "python-dotenv",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
todoauth = "todoauth.app:main"

[tool.hatch.build.targets.wheel]
packages = ["todoauth"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
