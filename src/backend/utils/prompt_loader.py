import yaml
import logging
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


class PromptLoader:
    _prompts: Dict[str, Dict[str, str]] = {}

    @classmethod
    def load_prompts(cls, prompt_name: str) -> Dict[str, str]:
        """Load (and cache) a prompt file from the prompts directory.

        Args:
            prompt_name: Name of the prompt file (without .yaml extension)

        Raises:
            FileNotFoundError: If the prompt file doesn't exist
        """
        if prompt_name not in cls._prompts:
            prompt_path = PROMPTS_DIR / f"{prompt_name}.yaml"
            if not prompt_path.exists():
                raise FileNotFoundError(
                    f"Prompt file {prompt_name}.yaml not found in {PROMPTS_DIR}"
                )
            with open(prompt_path, 'r', encoding='utf-8') as f:
                cls._prompts[prompt_name] = yaml.safe_load(f)
            logger.info(f"Loaded prompts from {prompt_path.name}")

        return cls._prompts[prompt_name]
