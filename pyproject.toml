[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kernkit"
version = "0.1.0"
description = "Teaching-kernel building blocks: libc helpers, printf formatting, bitmaps, ELF header parsing and a datagram network stack"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "operating-system", "elf", "bitmap", "printf", "networking", "datagram", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Operating System Kernels",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kernkit"]

[tool.pytest.ini_options]
addopts = "-ra"
