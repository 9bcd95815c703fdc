[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "isoeditor"
version = "0.1.0"
description = "A small 3D scene editor: load glTF models, arrange them and view them with an FPS camera"
requires-python = ">=3.10"
keywords = ["gltf", "glb", "3d", "scene", "editor", "opengl", "camera"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: X11 Applications",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]
dependencies = [
    "numpy",
    "pyglet",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
isoeditor = "isoeditor.app:main"

[tool.hatch.build.targets.wheel]
packages = ["isoeditor"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
