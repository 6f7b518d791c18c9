"""
Base interface for pipeline stages.

Every stage has one input type, one output type and raises only errors
from autoshorts.core.errors. Stages hold their collaborators (clients,
settings) but no per-run state, so one instance can serve one run and be
thrown away.
"""
from abc import ABC, abstractmethod
from typing import Generic, TypeVar


InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class Stage(ABC, Generic[InputT, OutputT]):
    """
    Base interface for all pipeline stages.

    Subclasses must implement:
    - stage_type: graph node name, also used in failure messages
    - run(): execute the stage on its typed input
    """

    @property
    @abstractmethod
    def stage_type(self) -> str:
        pass

    @property
    def description(self) -> str:
        return ""

    @abstractmethod
    async def run(self, data: InputT) -> OutputT:
        """
        Execute the stage.

        Args:
            data: Stage input, owned by this stage for the call

        Returns:
            Stage output, handed by value to the next stage
        """
        pass
