"""Template rendering for generated nginx, Vagrant and Ansible files"""

from pathlib import Path
from typing import Dict, List

from jinja2 import StrictUndefined, Template

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


class TemplateRenderer:
    """Loads templates shipped with stackup and renders them with a context"""

    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self.templates_dir = Path(templates_dir)
        self._cache: Dict[str, Template] = {}

    def _load_template(self, name: str) -> Template:
        """
        Load a Jinja2 template by relative name.

        Args:
            name: Path relative to the templates directory

        Returns:
            Jinja2 Template instance
        """
        if name not in self._cache:
            file_path = self.templates_dir / name
            with open(file_path, "r") as f:
                template_content = f.read()
            self._cache[name] = Template(
                template_content,
                trim_blocks=True,
                lstrip_blocks=True,
                keep_trailing_newline=True,
                undefined=StrictUndefined,
            )
        return self._cache[name]

    def render(self, name: str, **context) -> str:
        return self._load_template(name).render(**context)

    def read_static(self, name: str) -> str:
        """
        Read a file that must be emitted verbatim.

        Ansible role files carry their own {{ }} expressions for Ansible to
        evaluate, so they are copied rather than rendered.
        """
        return (self.templates_dir / name).read_text()

    def list_files(self, subdir: str) -> List[str]:
        """List template files below subdir as names relative to the templates dir."""
        base = self.templates_dir / subdir
        return sorted(
            str(p.relative_to(self.templates_dir))
            for p in base.rglob("*")
            if p.is_file()
        )
