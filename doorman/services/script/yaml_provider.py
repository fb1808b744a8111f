"""YAML-file script provider."""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from doorman.core.errors import ScriptFormatError
from doorman.services.script.base import ScriptProvider

logger = logging.getLogger(__name__)


class YamlScriptProvider(ScriptProvider):
    """Script provider backed by a YAML file mapping caller IDs to scripts."""

    def __init__(self, scripts_file: Optional[str] = None):
        """Initialize with optional scripts file path."""
        if scripts_file is None:
            scripts_file = Path(__file__).parent / "data" / "scripts.yaml"
        self.scripts_file = Path(scripts_file)
        self._scripts: Optional[Dict[str, Any]] = None

    async def _load_scripts(self) -> Dict[str, Any]:
        """Load scripts from YAML file."""
        if self._scripts is None:
            if not self.scripts_file.exists():
                logger.warning(f"[SCRIPTS] Scripts file not found: {self.scripts_file}")
                self._scripts = {}
            else:
                with open(self.scripts_file, "r") as f:
                    data = yaml.safe_load(f) or {}
                scripts = data.get("scripts") or {}
                for caller_id in scripts:
                    if not isinstance(caller_id, str):
                        raise ScriptFormatError(
                            f"Caller ID {caller_id!r} in {self.scripts_file} must be quoted."
                        )
                self._scripts = dict(scripts)
                logger.info(
                    f"[SCRIPTS] Loaded {len(self._scripts)} script(s) from {self.scripts_file}"
                )
        return self._scripts

    async def get_script(self, caller_id: str) -> Optional[Any]:
        """Get the script payload for a caller."""
        scripts = await self._load_scripts()
        return scripts.get(caller_id)
