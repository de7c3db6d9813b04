[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "natsim"
version = "0.1.0"
description = "Small simulations of complex and adaptive systems: an escape-time fractal, virtual ants, termites, the spatial Prisoner's Dilemma, classifier systems and a tiny Lisp."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "artificial life",
    "virtual ants",
    "termites",
    "prisoners dilemma",
    "classifier system",
    "lisp",
    "fractals",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Life",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
natsim-spider = "natsim.spider:main"
natsim-vants = "natsim.vants:main"
natsim-termites = "natsim.termites:main"
natsim-sipd = "natsim.sipd:main"
natsim-stutter = "natsim.stutter:main"
natsim-zcs = "natsim.zcs:main"
natsim-cups = "natsim.cups:main"

[tool.hatch.build.targets.wheel]
packages = ["natsim"]

[tool.pytest.ini_options]
addopts = "-ra"
