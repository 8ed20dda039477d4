"""scaffoldgen scaffolder: renders a generation plan into files or a stream.

Quick usage::

    from scaffoldgen.config import Config
    from scaffoldgen.scaffolder import ProjectGenerator

    config = Config(config_path=Path("scaffold.json"), output_dir=Path("/tmp/out"))
    result = await ProjectGenerator(config).generate()
"""

from scaffoldgen.scaffolder.context import RenderContext, build_context
from scaffoldgen.scaffolder.generator import GenerationResult, ProjectGenerator
from scaffoldgen.scaffolder.materializer import FileMaterializer
from scaffoldgen.scaffolder.templates import TemplateRegistry

__all__ = [
    "FileMaterializer",
    "GenerationResult",
    "ProjectGenerator",
    "RenderContext",
    "TemplateRegistry",
    "build_context",
]
