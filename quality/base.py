"""
quality/base.py

Abstract base interface for entity quality scorers.
All scorer implementations must inherit from BaseQualityScorer.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from app.domain.entity import Entity
from app.domain.field_metadata import FieldMetadata
from app.domain.quality import QualityContext, QualityScore
from app.domain.validation import ValidationSummary


class BaseQualityScorer(ABC):
    """Abstract base class for six-dimension quality scorers.

    Subclasses provide the per-dimension math; batch scoring is shared.
    """

    @abstractmethod
    def calculate_score(self, entity: Entity, context: QualityContext) -> QualityScore:
        """Compute all six dimension scores and the weighted overall score.

        Args:
            entity: The normalized entity being scored.
            context: Metadata, rules, neighbouring entities and weights.

        Returns:
            A QualityScore whose dimensions are on a 0-100 scale.
        """
        raise NotImplementedError("Subclasses must implement calculate_score()")

    @abstractmethod
    def calculate_completeness(
        self,
        entity: Entity,
        metadata: Sequence[FieldMetadata],
    ) -> float:
        raise NotImplementedError("Subclasses must implement calculate_completeness()")

    @abstractmethod
    def calculate_accuracy(
        self,
        entity: Entity,
        validation_summary: ValidationSummary | None,
    ) -> float:
        raise NotImplementedError("Subclasses must implement calculate_accuracy()")

    def calculate_batch_scores(
        self,
        entities: Sequence[Entity],
        context: QualityContext,
    ) -> list[QualityScore]:
        """Score each entity independently against the same context.

        The per-entity validation summary on the context does not apply to
        a batch, so it is cleared for every entity.
        """
        batch_context = QualityContext(
            metadata=context.metadata,
            validation_rules=context.validation_rules,
            related_entities=context.related_entities,
            existing_entities=list(context.existing_entities) or list(entities),
            weights=context.weights,
        )
        return [self.calculate_score(entity, batch_context) for entity in entities]
