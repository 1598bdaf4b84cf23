"""Keyword-based industry classification for market lookups."""

from __future__ import annotations

from typing import Mapping

# Checked in order; the first industry with a matching keyword wins.
INDUSTRY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "이커머스": ("쇼핑", "커머스", "판매", "마켓", "온라인스토어"),
    "핀테크": ("금융", "결제", "투자", "송금", "뱅킹", "보험"),
    "에듀테크": ("교육", "학습", "강의", "튜터", "온라인교육"),
    "헬스테크": ("건강", "의료", "헬스케어", "병원", "진료"),
    "푸드테크": ("음식", "배달", "식품", "레스토랑", "밀키트"),
    "모빌리티": ("이동", "차량", "배차", "택시", "킥보드"),
    "프롭테크": ("부동산", "집", "매물", "임대", "전세"),
    "HR테크": ("채용", "인사", "HR", "구인", "구직"),
    "SaaS": ("소프트웨어", "서비스", "B2B", "기업용"),
    "AI": ("인공지능", "AI", "머신러닝", "자동화"),
    "커뮤니티": ("커뮤니티", "네트워킹", "소셜", "플랫폼"),
    "외주": ("외주", "프리랜서", "개발자", "디자이너", "매칭"),
}

DEFAULT_INDUSTRY = "스타트업"


def extract_industry(idea: str, follow_up_answers: Mapping[str, str] | None = None) -> str:
    """Classify an idea into one industry.

    Args:
        idea: Idea text.
        follow_up_answers: Answers whose values are searched too.

    Returns:
        The first matching industry, or DEFAULT_INDUSTRY.
    """
    text = " ".join([idea, *(follow_up_answers or {}).values()])
    for industry, keywords in INDUSTRY_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return industry
    return DEFAULT_INDUSTRY
