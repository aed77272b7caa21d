[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "previous"
version = "0.1.0"
description = "Web application toolkit: SQL query builder, filtering and pagination, money helpers, inline CSS compiler and a build/migration command."
requires-python = ">=3.10"
keywords = ["web", "sql", "query-builder", "pagination", "migrations", "css", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Topic :: Database",
    "Topic :: Software Development :: Build Tools",
]
dependencies = [
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
metagen = "previous.metagen:main"

[tool.setuptools.packages.find]
include = ["previous*"]

[tool.pytest.ini_options]
addopts = "-ra"
