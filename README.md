# isoeditor

A small interactive 3D scene editor. It loads glTF models (`.gltf` and `.glb`),
places them in a scene and draws them with simple diffuse lighting and the
base-colour texture, seen through a first-person camera. A built-in command
console adds and removes objects, sets the background colour and defines
path aliases.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the editor

```
isoeditor
```

This opens an OpenGL 3.3 window titled "ISO Engine Editor". The top left
shows the scene's objects with their model path, position, rotation and
scale; the top right shows the light's position and colour; the bottom shows
the last lines of console output and the input prompt. If the shader program
cannot be built, the error is logged and the command exits with status 1.

### Controls

- `W` / `S` move the camera forward and back.
- `A` / `D` move it left and right.
- Hold the right mouse button and drag to look around. Pitch is limited to
  ±89 degrees.
- `Enter` starts typing a console command; `Enter` again runs it, `Escape`
  discards it. Camera keys are ignored while typing.

### Console commands

| Command | What it does |
| --- | --- |
| `clear` | clears the console output |
| `echo <text...>` | prints the text back |
| `addobject <id> <path>` | loads a model and adds it to the scene under `id` |
| `rmobject <id>` | removes an object from the scene |
| `bgcolor <r> <g> <b>` | sets the background colour, each value 0 to 255 |
| `alias <key> <value>` | adds a path alias |

Arguments are split like a shell command line, so quoted arguments may
contain spaces. An unknown command prints `Unknown command: <name>`; a
command with too few arguments prints its usage.

Model paths are always taken relative to the directory of the running
program. A path that starts with `@` uses an alias: in
`@assets/models/box.glb` the text up to the first `/` or `\` names the alias,
and its value replaces `@assets`. The `assets` alias is defined from the start
and points at `../../assets`. When two aliases share a key, the one added
first is used.

## Using it as a library

The building blocks can be used on their own:

```python
import math

from isoeditor.camera import FPSCamera
from isoeditor.transforms import perspective

camera = FPSCamera((0.0, 0.0, 5.0), 0.0, -90.0)
camera.move_forward(0.5, 5.0)
camera.rotate(10.0, 0.0)          # degrees
view = camera.view_matrix()
projection = perspective(math.radians(45.0), 1920 / 1080, 0.1, 100.0)
```

Matrices are 4x4 `numpy` arrays applied as `M @ v`.

- `isoeditor.transforms`: `normalize`, `look_at`, `perspective`,
  `translation`, `rotation`, `scaling`, `quaternion_matrix` (angles in
  radians).
- `isoeditor.camera`: the abstract `Camera`, `FPSCamera` (pitch and yaw in
  degrees) and `TargetCamera`.
- `isoeditor.gltf`: `load_document`, `node_transform`, `read_primitive` and
  `GLTFLoader`, which read glTF files into interleaved vertex data
  (position, normal, UV), indices and decoded textures, raising `GltfError`
  on bad input. `GLTFLoader` works without a GPU when no uploader is given.
- `isoeditor.resources`: `MeshPrimitive`, `ModelInstance` and
  `ResourceManager`, a keyed cache of meshes and textures.
- `isoeditor.shader`: `Shader`, a linked GLSL program with typed uniform
  setters, raising `ShaderError`.
- `isoeditor.render`: `Renderer` and the GPU helpers `upload_primitive`,
  `release_mesh` and `release_texture`.
- `isoeditor.scene`: `Scene` and `SceneObject`, with `add_object`,
  `remove_object`, `resolve_path`, and setters to move, rotate and scale
  objects.
- `isoeditor.terminal`: `Terminal` and `Message`, which run the console
  commands against a scene.
- `isoeditor.app`: `EditorWindow`, `apply_keyboard`, `apply_mouse_motion` and
  `main`.

## What it does not do

- Objects cannot be moved, rotated or scaled from the editor window: the
  object and light panels only display values, and the console has no
  commands for placement. Use the `Scene` methods from Python for that.
- The light's position and colour cannot be changed from the window either.
- Scenes cannot be saved or loaded; only single models are read.
- Only `UNSIGNED_SHORT` and `UNSIGNED_INT` indices are decoded, and only
  float vertex attributes; animations, skins and other materials are ignored.