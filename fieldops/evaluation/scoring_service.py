# fieldops/evaluation/scoring_service.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from fieldops.config import EvaluationConfig, config
from fieldops.data_models import CriterionCategory, EvaluationCriterion, EvaluationResult, ScoreBreakdown
from fieldops.evaluation.criteria import CRITERIA_BY_ID, EVALUATION_CRITERIA


logger = logging.getLogger(__name__)


TIER_EXCELLENT = "ممتاز"
TIER_NEEDS_DEVELOPMENT = "يحتاج إلى تطوير"
TIER_NEEDS_TRAINING = "يحتاج إلى تدريب"
TIER_ACTION_PLAN = "خطة عمل"
TIER_SALES_TRAINING = "تدريب مبيعات / منتجات"

SALES_PRODUCT_TRAINING = "تدريب مبيعات / منتجات"


@dataclass(frozen=True)
class RecommendationRule:
    """Минимальные значения категорий для уровня и тексты рекомендаций при недоборе."""
    selling_skills_floor: float
    planning_floor: float
    knowledge_floor: float
    selling_skills_text: str
    planning_text: str
    knowledge_text: str


_FINE_TUNING = dict(
    selling_skills_text="تحسين دقيق لمهارات البيع",
    planning_text="تحسين دقيق للتخطيط",
    knowledge_text="تحسين دقيق للمعرفة",
)
_TRAINING = dict(
    selling_skills_text="تدريب مهارات البيع",
    planning_text="تدريب التخطيط",
    knowledge_text="تدريب المنتجات وإدارة العملاء",
)

EXCELLENT_RULE = RecommendationRule(45, 12, 8, **_FINE_TUNING)
DEVELOPMENT_RULE = RecommendationRule(40, 12, 11, **_TRAINING)
TRAINING_RULE = RecommendationRule(40, 11, 10, **_TRAINING)
ACTION_PLAN_RULE = RecommendationRule(35, 11, 8, **_TRAINING)


class EvaluationService:
    """
    Сервис оценки медицинского представителя.

    Отвечает за:
    - суммирование оценок по четырём категориям рубрики;
    - отнесение итоговой суммы к уровню по фиксированным порогам;
    - подбор рекомендаций по порогам внутри уровня.

    Итог: сырая сумма баллов без нормировки: максимумы критериев
    в сумме дают ровно 100.
    """

    def __init__(self, eval_config: Optional[EvaluationConfig] = None) -> None:
        eval_config = eval_config or config.evaluation
        self._step = eval_config.half_point_step
        self._excellent = eval_config.excellent_threshold
        self._development = eval_config.development_threshold
        self._training = eval_config.training_threshold
        self._action_plan = eval_config.action_plan_threshold

    def normalize_rating(self, criterion: EvaluationCriterion, value: Any) -> float:
        """
        Приводит оценку к допустимой шкале {0, 0.5, ..., max_score}:
        нечисловое значение → 0, выход за границы обрезается,
        промежуточное значение округляется вниз до шага.
        """
        try:
            rating = float(value)
        except OverflowError:
            # целое, не влезающее во float: дальше обрежется до границы шкалы
            rating = math.inf if value > 0 else -math.inf
        except (TypeError, ValueError):
            logger.warning("Non-numeric rating %r for '%s', using 0", value, criterion.id)
            return 0.0
        if math.isnan(rating):
            logger.warning("NaN rating for '%s', using 0", criterion.id)
            return 0.0

        clamped = min(max(rating, 0.0), float(criterion.max_score))
        snapped = math.floor(clamped / self._step) * self._step
        if snapped != rating:
            logger.warning(
                "Rating %s for '%s' adjusted to %s (max %s)", rating, criterion.id, snapped, criterion.max_score
            )
        return snapped

    def score(self, ratings: Mapping[str, Any]) -> ScoreBreakdown:
        """Суммы по категориям; отсутствующая оценка = 0, неизвестные id игнорируются."""
        unknown = [key for key in ratings if key not in CRITERIA_BY_ID]
        if unknown:
            logger.warning("Ignoring ratings for unknown criteria: %s", ", ".join(sorted(unknown)))

        totals = {category: 0.0 for category in CriterionCategory}
        for criterion in EVALUATION_CRITERIA:
            if criterion.id in ratings:
                totals[criterion.category] += self.normalize_rating(criterion, ratings[criterion.id])

        breakdown = ScoreBreakdown(
            planning=totals[CriterionCategory.PLANNING],
            personal_traits=totals[CriterionCategory.PERSONAL_TRAIT],
            knowledge=totals[CriterionCategory.KNOWLEDGE],
            selling_skills=totals[CriterionCategory.SELLING_SKILLS],
        )
        breakdown.total = (
            breakdown.planning + breakdown.personal_traits + breakdown.knowledge + breakdown.selling_skills
        )
        return breakdown

    def classify(self, total: float) -> Tuple[str, str]:
        """
        Уровень и цветовая подсказка по итоговой сумме.
        Пороги проверяются сверху вниз, граница уровня строгая (> порога).
        """
        if total > self._excellent:
            return TIER_EXCELLENT, "green"
        if total > self._development:
            return TIER_NEEDS_DEVELOPMENT, "blue"
        if total > self._training:
            return TIER_NEEDS_TRAINING, "yellow"
        if total > self._action_plan:
            return TIER_ACTION_PLAN, "orange"
        return TIER_SALES_TRAINING, "red"

    def _rule_for(self, total: float) -> Optional[RecommendationRule]:
        if total > self._excellent:
            return EXCELLENT_RULE
        if total > self._development:
            return DEVELOPMENT_RULE
        if total > self._training:
            return TRAINING_RULE
        if total > self._action_plan:
            return ACTION_PLAN_RULE
        return None

    def recommend(self, breakdown: ScoreBreakdown) -> List[str]:
        """
        Рекомендации по категориям ниже порога уровня.
        При total <= 55 возвращается единственная общая рекомендация.
        Пустой список означает, что точечная доработка не нужна.
        """
        rule = self._rule_for(breakdown.total)
        if rule is None:
            return [SALES_PRODUCT_TRAINING]

        recommendations: List[str] = []
        if breakdown.selling_skills < rule.selling_skills_floor:
            recommendations.append(rule.selling_skills_text)
        if breakdown.planning < rule.planning_floor:
            recommendations.append(rule.planning_text)
        if breakdown.knowledge < rule.knowledge_floor:
            recommendations.append(rule.knowledge_text)
        return recommendations

    def evaluate(self, ratings: Mapping[str, Any]) -> EvaluationResult:
        breakdown = self.score(ratings)
        tier, color_hint = self.classify(breakdown.total)
        return EvaluationResult(
            breakdown=breakdown,
            tier=tier,
            color_hint=color_hint,
            recommendations=self.recommend(breakdown),
        )
