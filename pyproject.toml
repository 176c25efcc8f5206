[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gridphys"
version = "0.1.0"
description = "A 2D physics room with a spatial-grid broad phase, a tick runner and a WebSocket state broadcaster"
requires-python = ">=3.10"
keywords = ["physics", "simulation", "spatial grid", "collision", "websocket"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
    "Topic :: Games/Entertainment :: Simulation",
]
dependencies = [
    "websockets",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
gridphys-simulate = "gridphys.simulate:main"
gridphys-server = "gridphys.server:main"

[tool.hatch.build.targets.wheel]
packages = ["gridphys"]

[tool.pytest.ini_options]
addopts = "-ra"
