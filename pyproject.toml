[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cvmattest"
version = "0.1.0"
description = "Client helpers for confidential VM attestation: IMDS requests, TPM and isolation evidence encoding, JWT unsealing and AK certificate renewal."
requires-python = ">=3.10"
keywords = ["attestation", "tpm", "imds", "sev-snp", "confidential-computing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "requests>=2.28",
    "cryptography>=41",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "responses>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["cvmattest"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
