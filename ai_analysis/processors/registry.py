"""Result-type → processor registry."""

from __future__ import annotations

import logging

from ai_analysis.core.exceptions import UnsupportedResultType
from ai_analysis.processors.base import ResultProcessor
from ai_analysis.processors.disc import DiscProcessor
from ai_analysis.processors.eq import EqProcessor
from ai_analysis.processors.happiness import HappinessProcessor
from ai_analysis.processors.holland import HollandProcessor
from ai_analysis.processors.leadership import LeadershipProcessor
from ai_analysis.processors.love_language import LoveLanguageProcessor
from ai_analysis.processors.mbti import MbtiProcessor
from ai_analysis.processors.phq9 import Phq9Processor
from ai_analysis.processors.tarot import TarotProcessor
from ai_analysis.processors.vark import VarkProcessor

logger = logging.getLogger(__name__)


class ProcessorRegistry:
    def __init__(self) -> None:
        self._processors: dict[str, ResultProcessor] = {}

    def register(self, result_type: str, processor: ResultProcessor) -> None:
        if result_type in self._processors:
            logger.warning("Replacing processor for %s", result_type)
        self._processors[result_type] = processor

    def get(self, result_type: str) -> ResultProcessor:
        try:
            return self._processors[result_type]
        except KeyError:
            raise UnsupportedResultType(result_type) from None

    def supported_types(self) -> set[str]:
        return set(self._processors)

    def __contains__(self, result_type: str) -> bool:
        return result_type in self._processors

    def __iter__(self):
        return iter(self._processors.values())


def default_registry() -> ProcessorRegistry:
    registry = ProcessorRegistry()
    for processor in (
        VarkProcessor(),
        TarotProcessor(),
        Phq9Processor(),
        EqProcessor(),
        HappinessProcessor(),
        MbtiProcessor(),
        LoveLanguageProcessor(),
        DiscProcessor(),
        LeadershipProcessor(),
        HollandProcessor(),
    ):
        registry.register(processor.result_type, processor)
    return registry
