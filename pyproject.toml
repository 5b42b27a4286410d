[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "n2kpilot"
version = "0.1.0"
description = "NMEA 2000 autopilot console state, radio remote logic and CAN bus watchers"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "nmea2000",
    "n2k",
    "can",
    "socketcan",
    "j1939",
    "autopilot",
    "marine",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems :: Controller Area Network (CAN) :: J1939",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
n2k-watch-beep = "n2kpilot.watch:beep_main"
n2k-watch-mob = "n2kpilot.watch:mob_main"

[tool.hatch.build.targets.wheel]
packages = ["n2kpilot"]

[tool.hatch.build.targets.sdist]
include = ["n2kpilot", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
