"""The interactive editor window and its command-line entry point."""

from __future__ import annotations

import argparse
import logging
import math
from typing import Callable, Iterable, Optional

from .camera import FPSCamera
from .gltf import GLTFLoader
from .render import (
    DEFAULT_LIGHT_COLOR,
    DEFAULT_LIGHT_POSITION,
    Renderer,
    release_mesh,
    release_texture,
    upload_primitive,
)
from .resources import ResourceManager
from .scene import Scene
from .shader import ShaderError
from .terminal import Terminal
from .transforms import perspective

log = logging.getLogger(__name__)

WINDOW_TITLE = "ISO Engine Editor"
WINDOW_WIDTH = 1920
WINDOW_HEIGHT = 1080
CAMERA_SPEED = 5.0
MOUSE_SENSITIVITY = 0.1
FIELD_OF_VIEW = 45.0
NEAR_PLANE = 0.1
FAR_PLANE = 100.0
CONSOLE_LINES = 10


def apply_keyboard(camera: FPSCamera, pressed: Iterable[str], dt: float) -> None:
    """Move ``camera`` for the held W/A/S/D keys over ``dt`` seconds."""
    keys = {k.lower() for k in pressed}
    if "w" in keys:
        camera.move_forward(dt, CAMERA_SPEED)
    if "s" in keys:
        camera.move_forward(dt, -CAMERA_SPEED)
    if "d" in keys:
        camera.move_right(dt, CAMERA_SPEED)
    if "a" in keys:
        camera.move_right(dt, -CAMERA_SPEED)


def apply_mouse_motion(camera: FPSCamera, dx: float, dy: float) -> None:
    """Turn ``camera`` by a mouse motion; ``dy`` grows downwards on screen."""
    camera.rotate(-dy * MOUSE_SENSITIVITY, dx * MOUSE_SENSITIVITY)


def _format_vec(values: Iterable[float]) -> str:
    return " ".join(f"{float(v):.3f}" for v in values)


class EditorWindow:
    """OpenGL window showing the scene, an object overview and a console.

    Press Enter to type a console command and Enter again to run it; Escape
    leaves the console. Hold the right mouse button to look around.
    """

    def __init__(
        self,
        scene: Scene,
        renderer: Renderer,
        camera: FPSCamera,
        terminal: Terminal,
    ) -> None:
        import pyglet
        from pyglet import gl
        from pyglet.window import key, mouse

        self._pyglet = pyglet
        self._gl = gl
        self._key = key
        self._mouse = mouse

        self.scene = scene
        self.renderer = renderer
        self.camera = camera
        self.terminal = terminal
        self.light_position = list(DEFAULT_LIGHT_POSITION)
        self.light_color = list(DEFAULT_LIGHT_COLOR)
        self.cleanup: list[Callable[[], None]] = []

        self.console_input = ""
        self.console_focused = False
        self._rotating = False

        config = gl.Config(
            double_buffer=True,
            depth_size=24,
            stencil_size=8,
            major_version=3,
            minor_version=3,
            forward_compatible=True,
        )
        self.window = pyglet.window.Window(
            width=WINDOW_WIDTH,
            height=WINDOW_HEIGHT,
            caption=WINDOW_TITLE,
            resizable=True,
            vsync=True,
            config=config,
        )
        self.window.maximize()
        self.window.set_mouse_visible(False)

        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glEnable(gl.GL_CULL_FACE)
        gl.glCullFace(gl.GL_BACK)

        self._keys = key.KeyStateHandler()
        self._key_names = {key.W: "w", key.A: "a", key.S: "s", key.D: "d"}
        self.window.push_handlers(self._keys)
        self.window.push_handlers(
            on_draw=self._on_draw,
            on_key_press=self._on_key_press,
            on_text=self._on_text,
            on_text_motion=self._on_text_motion,
            on_mouse_press=self._on_mouse_press,
            on_mouse_release=self._on_mouse_release,
            on_mouse_drag=self._on_mouse_drag,
            on_close=self._on_close,
        )

        self._batch = pyglet.graphics.Batch()
        label_width = WINDOW_WIDTH // 2
        self._objects_label = pyglet.text.Label(
            "", x=10, y=WINDOW_HEIGHT - 10, width=label_width, multiline=True,
            anchor_y="top", font_size=11, color=(255, 255, 255, 255), batch=self._batch,
        )
        self._light_label = pyglet.text.Label(
            "", x=WINDOW_WIDTH - 10, y=WINDOW_HEIGHT - 10, width=label_width,
            multiline=True, anchor_x="right", anchor_y="top", align="right",
            font_size=11, color=(255, 255, 255, 255), batch=self._batch,
        )
        self._console_label = pyglet.text.Label(
            "", x=10, y=10, width=WINDOW_WIDTH - 20, multiline=True,
            anchor_y="bottom", font_size=11, color=(220, 237, 227, 255), batch=self._batch,
        )

        pyglet.clock.schedule(self._update)

    def _update(self, dt: float) -> None:
        if self.console_focused:
            return
        pressed = [name for symbol, name in self._key_names.items() if self._keys[symbol]]
        apply_keyboard(self.camera, pressed, dt)

    def _objects_text(self) -> str:
        lines = ["Scene Objects"]
        for object_id, obj in self.scene.objects.items():
            lines.append(f"{object_id}  Model: {obj.model_path}")
            lines.append(f"    Position: {_format_vec(obj.position)}")
            lines.append(f"    Rotation: {_format_vec(obj.rotation)}")
            lines.append(f"    Scale: {_format_vec(obj.scale)}")
        return "\n".join(lines)

    def _light_text(self) -> str:
        return (
            f"Light\nPosition: {_format_vec(self.light_position)}\n"
            f"Color: {_format_vec(self.light_color)}"
        )

    def _console_text(self) -> str:
        history = [m.value for m in self.terminal.messages[-CONSOLE_LINES:]]
        prompt = "> " + self.console_input + ("_" if self.console_focused else "")
        return "\n".join([*history, prompt])

    def _on_draw(self) -> None:
        gl = self._gl
        self.renderer.set_light_properties(self.light_position, self.light_color)
        self.scene.render_scene(self.renderer, self.camera)

        self._objects_label.text = self._objects_text()
        self._light_label.text = self._light_text()
        self._console_label.text = self._console_text()
        self._light_label.x = self.window.width - 10
        self._objects_label.y = self._light_label.y = self.window.height - 10

        gl.glDisable(gl.GL_DEPTH_TEST)
        gl.glDisable(gl.GL_CULL_FACE)
        gl.glEnable(gl.GL_BLEND)
        gl.glBlendFunc(gl.GL_SRC_ALPHA, gl.GL_ONE_MINUS_SRC_ALPHA)
        self._batch.draw()
        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glEnable(gl.GL_CULL_FACE)

    def _on_key_press(self, symbol: int, modifiers: int) -> Optional[bool]:
        key = self._key
        if symbol in (key.ENTER, key.RETURN):
            if self.console_focused:
                line, self.console_input = self.console_input, ""
                self.console_focused = False
                self.terminal.execute(line)
            else:
                self.console_focused = True
            return self._pyglet.event.EVENT_HANDLED
        if symbol == key.ESCAPE:
            self.console_focused = False
            self.console_input = ""
            return self._pyglet.event.EVENT_HANDLED
        return None

    def _on_text(self, text: str) -> None:
        if self.console_focused:
            self.console_input += text.replace("\r", "").replace("\n", "")

    def _on_text_motion(self, motion: int) -> None:
        if self.console_focused and motion == self._key.MOTION_BACKSPACE:
            self.console_input = self.console_input[:-1]

    def _on_mouse_press(self, x: int, y: int, button: int, modifiers: int) -> None:
        if button == self._mouse.RIGHT:
            self._rotating = True

    def _on_mouse_release(self, x: int, y: int, button: int, modifiers: int) -> None:
        if button == self._mouse.RIGHT:
            self._rotating = False

    def _on_mouse_drag(
        self, x: int, y: int, dx: int, dy: int, buttons: int, modifiers: int
    ) -> None:
        if self._rotating:
            apply_mouse_motion(self.camera, dx, -dy)

    def _on_close(self) -> None:
        self._pyglet.clock.unschedule(self._update)
        self.renderer.close()
        for action in self.cleanup:
            action()
        self.cleanup.clear()

    def run(self) -> None:
        """Run the event loop until the window is closed."""
        self._pyglet.app.run()

    def close(self) -> None:
        self._on_close()
        self.window.close()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="isoeditor", description="Interactive 3D scene editor.")
    parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    resources = ResourceManager(release_mesh, release_texture)
    scene = Scene(GLTFLoader(resources, upload_primitive))
    renderer = Renderer()
    camera = FPSCamera((0.0, 0.0, 5.0))
    terminal = Terminal(scene)

    editor = EditorWindow(scene, renderer, camera, terminal)
    editor.cleanup.append(resources.clear)
    try:
        renderer.initialize()
    except ShaderError as exc:
        log.error("Failed to initialize renderer: %s", exc)
        editor.close()
        return 1

    renderer.set_projection_matrix(
        perspective(
            math.radians(FIELD_OF_VIEW), WINDOW_WIDTH / WINDOW_HEIGHT, NEAR_PLANE, FAR_PLANE
        )
    )
    log.info("Scene loaded successfully")
    editor.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())