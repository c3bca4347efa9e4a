# fieldops/evaluation/criteria.py
from __future__ import annotations

from typing import Dict, List, Tuple

from fieldops.data_models import CriterionCategory, EvaluationCriterion


# Рубрика оценки представителя. Максимумы по категориям: 15 / 20 / 10 / 55, в сумме 100.
EVALUATION_CRITERIA: Tuple[EvaluationCriterion, ...] = (
    EvaluationCriterion("previous_followup", "مراجعة المكالمة السابقة ومتابعة ما تم فيها", CriterionCategory.PLANNING, 5),
    EvaluationCriterion("organize_call", "تنظيم المكالمة: الأهداف، المواد الترويجية، تسلسل العرض", CriterionCategory.PLANNING, 5),
    EvaluationCriterion("targeting", "استهداف العملاء: عادات الوصف، العلامة التجارية المستهدفة", CriterionCategory.PLANNING, 5),
    EvaluationCriterion("presentation", "الاهتمام بالمظهر والعرض", CriterionCategory.PERSONAL_TRAIT, 5),
    EvaluationCriterion("area_knowledge", "معرفة توزيع العملاء والوعي بإدارة المنطقة", CriterionCategory.KNOWLEDGE, 5),
    EvaluationCriterion("opening_subject", "الافتتاحية: واضحة ومباشرة للموضوع", CriterionCategory.SELLING_SKILLS, 5),
    EvaluationCriterion("opening_products", "الافتتاحية: متعلقة بالمنتجات", CriterionCategory.SELLING_SKILLS, 5),
    EvaluationCriterion("customer_accept", "قبول العميل للافتتاحية", CriterionCategory.SELLING_SKILLS, 5),
    EvaluationCriterion("probe_use", "استخدام أسلوب التحقيق", CriterionCategory.SELLING_SKILLS, 5),
    EvaluationCriterion("listening", "مهارات الإصغاء", CriterionCategory.SELLING_SKILLS, 5),
    EvaluationCriterion("product_knowledge", "المعرفة بالمنتج ورسائله خلال المكالمة", CriterionCategory.KNOWLEDGE, 5),
    EvaluationCriterion("customer_need", "دعم احتياجات العميل الصحيحة", CriterionCategory.SELLING_SKILLS, 5),
    EvaluationCriterion("confident_voice", "الثقة، نبرة الصوت، استخدام الأقلام، تدفق المكالمة ونغمتها", CriterionCategory.PERSONAL_TRAIT, 5),
    EvaluationCriterion("detailing_aids", "استخدام وسائل العرض بشكل صحيح", CriterionCategory.SELLING_SKILLS, 5),
    EvaluationCriterion("closing_business", "طلب الأعمال عند الإغلاق", CriterionCategory.SELLING_SKILLS, 5),
    EvaluationCriterion("closing_feedback", "الحصول على تغذية راجعة إيجابية عند الإغلاق", CriterionCategory.SELLING_SKILLS, 10),
    EvaluationCriterion("resolving_objection", "معالجة الاعتراضات والمخاوف", CriterionCategory.SELLING_SKILLS, 5),
    EvaluationCriterion("reporting_punctuality", "الالتزام بمواعيد التقارير قبل وبعد الموعد النهائي", CriterionCategory.PERSONAL_TRAIT, 5),
    EvaluationCriterion("total_visits", "إجمالي عدد الزيارات والمكالمات (6 زيارات، 3 صيدليات)", CriterionCategory.PERSONAL_TRAIT, 5),
)

CRITERIA_BY_ID: Dict[str, EvaluationCriterion] = {c.id: c for c in EVALUATION_CRITERIA}


def criteria_by_category() -> Dict[CriterionCategory, List[EvaluationCriterion]]:
    """Критерии, сгруппированные по категориям, в порядке объявления."""
    grouped: Dict[CriterionCategory, List[EvaluationCriterion]] = {}
    for criterion in EVALUATION_CRITERIA:
        grouped.setdefault(criterion.category, []).append(criterion)
    return grouped


def max_total() -> int:
    return sum(c.max_score for c in EVALUATION_CRITERIA)


def max_by_category() -> Dict[CriterionCategory, int]:
    return {
        category: sum(c.max_score for c in items)
        for category, items in criteria_by_category().items()
    }
