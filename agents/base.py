from abc import ABC, abstractmethod
import yaml

from app.core.config import settings
from schemas.trace import RequestLog

class BaseAgent(ABC):
    def __init__(self, name: str):
        self.name = name
        self.prompt_config = self._load_prompt()

    def _load_prompt(self) -> str:
        # Load from YAML
        with open(f"{settings.prompts_dir}/agents.yaml", "r") as f:
            data = yaml.safe_load(f)
            return data.get(self.name, {}).get("system", "")

    @abstractmethod
    async def analyze(self, record: RequestLog) -> str:
        """
        Analyze a single transaction record.

        Args:
            record: The record selected by the operator

        Returns:
            str: Human-readable analysis. Implementations must not raise.
        """
        pass
