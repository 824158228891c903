"""Gradio viewport for previewing scene documents."""
import gradio as gr
import PIL.Image

from minirt.core import Renderer
from minirt.loader import SceneError, build_scene, parse_document

# Hide the Gradio loading spinner so the previous frame stays visible while rendering.
CSS = """
.gradio-container { background-color: #0b0f19 !important; color: #e5e7eb !important; }
#output_img { background-color: #0b0f19 !important; border-radius: 8px; overflow: hidden; border: none !important; }
#output_img img { object-fit: contain; }
.generating, .pending { opacity: 1 !important; filter: none !important; transition: none !important; }
.loading, .progress-view, .loader, .spinner { display: none !important; visibility: hidden !important; }
"""

EXAMPLE_SCENE = """{
  // Metal sphere carved out of a cube, on a floor plane.
  "camera": {"fov": {"x": {"degree": 60}}, "position": [6, -6, 4], "lookAt": [0, 0, 0]},
  "voidColor": [0.05, 0.07, 0.12],
  "ambientLight": [0.05, 0.05, 0.05],
  "objects": [
    {"type": "point", "color": [120, 110, 100], "position": [4, -3, 8]},
    {"type": "directional", "color": [0.4, 0.4, 0.5], "direction": [-1, 1, -2]},
    {"type": "plane", "coefficients": {"z": 1, "0": 1},
     "material": {"albedo": [0.6, 0.6, 0.6], "roughness": 0.8}},
    {"type": "difference",
     "a": {"type": "cube", "size": [2, 2, 2],
           "material": {"albedo": [0.9, 0.4, 0.2], "roughness": 0.4}},
     "b": {"type": "sphere", "radius": 1.3,
           "material": {"albedo": [0.9, 0.9, 0.9], "roughness": 0.2, "metallic": 1}}}
  ]
}
"""


def render_preview(scene_text, width=320, super_sampling=1, exposure=1.0, gamma=2.2):
    """
    Render a scene document at preview size.

    The height follows the document's aspect ratio (4:3 when it sets none).
    """
    document = parse_document(scene_text)
    aspect = document.get("width", 4) / document.get("height", 3)
    document["width"] = int(width)
    document["height"] = max(1, int(round(width / aspect)))
    scene = build_scene(document)
    renderer = Renderer(scene, super_sampling=int(super_sampling))
    return PIL.Image.fromarray(renderer.render(exposure=exposure, gamma=gamma))


def create_ui():

    def render_frame(scene_text, width, super_sampling, exposure, gamma):
        try:
            return render_preview(scene_text, width, super_sampling, exposure, gamma), ""
        except SceneError as e:
            return None, f"**Scene error:** {e}"

    with gr.Blocks(title="minirt") as demo:
        gr.Markdown("# minirt: Scene Viewport")

        with gr.Row():
            with gr.Column(scale=1):
                scene_box = gr.Code(value=EXAMPLE_SCENE, language="json", label="Scene document")
                width_slider = gr.Slider(minimum=64, maximum=800, value=320, step=32, label="Width",
                                         info="Lower for speed, higher for quality")
                ss_slider = gr.Slider(minimum=1, maximum=4, value=1, step=1, label="Super-sampling")
                exposure_slider = gr.Slider(minimum=0.1, maximum=8.0, value=1.0, step=0.1,
                                            label="Exposure")
                gamma_slider = gr.Slider(minimum=1.0, maximum=3.0, value=2.2, step=0.1, label="Gamma")
                render_btn = gr.Button("Render", variant="primary")

            with gr.Column(scale=2):
                output_img = gr.Image(label="Viewport", interactive=False, elem_id="output_img")
                status = gr.Markdown()

        inputs = [scene_box, width_slider, ss_slider, exposure_slider, gamma_slider]
        outputs = [output_img, status]

        render_btn.click(fn=render_frame, inputs=inputs, outputs=outputs)
        for slider in inputs[1:]:
            slider.change(fn=render_frame, inputs=inputs, outputs=outputs,
                          trigger_mode="always_last", show_progress="hidden")

        demo.load(fn=render_frame, inputs=inputs, outputs=outputs, show_progress="hidden")

    return demo


if __name__ == "__main__":
    demo = create_ui()
    demo.launch(css=CSS)
