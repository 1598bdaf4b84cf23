"""
Static market and competitor lookup tools.

Korean market figures (2024), trends, competitors per category and company
profiles, exposed to the model as OpenAI-style function tools. Every tool
returns plain text; unknown lookups answer with a hint instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, TypeVar

from ia.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class MarketFigure:
    size: str
    growth: str
    tam: str
    year: int = 2024


@dataclass(frozen=True)
class CompanyProfile:
    founded: int
    category: str
    valuation: str
    users: str
    features: tuple[str, ...]
    strength: str


MARKET_DATA: dict[str, MarketFigure] = {
    # Tech platforms
    "이커머스": MarketFigure("200조원", "15%", "500조원"),
    "푸드테크": MarketFigure("30조원", "12%", "80조원"),
    "에듀테크": MarketFigure("10조원", "20%", "30조원"),
    "핀테크": MarketFigure("25조원", "18%", "100조원"),
    "헬스테크": MarketFigure("8조원", "25%", "50조원"),
    "HR테크": MarketFigure("3조원", "15%", "15조원"),
    "프롭테크": MarketFigure("5조원", "22%", "30조원"),
    "리걸테크": MarketFigure("1조원", "30%", "10조원"),
    # Community and social
    "소셜미디어": MarketFigure("5조원", "8%", "20조원"),
    "커뮤니티플랫폼": MarketFigure("2조원", "15%", "10조원"),
    "창업커뮤니티": MarketFigure("3000억원", "20%", "1조원"),
    "네트워킹": MarketFigure("1조원", "12%", "5조원"),
    # Content and media
    "콘텐츠": MarketFigure("15조원", "10%", "50조원"),
    "OTT": MarketFigure("3조원", "25%", "10조원"),
    "웹툰": MarketFigure("2조원", "15%", "8조원"),
    "게임": MarketFigure("20조원", "8%", "50조원"),
    # Services
    "배달": MarketFigure("30조원", "5%", "50조원"),
    "모빌리티": MarketFigure("10조원", "18%", "40조원"),
    "공유경제": MarketFigure("3조원", "15%", "15조원"),
    "구독경제": MarketFigure("5조원", "20%", "20조원"),
    "외주플랫폼": MarketFigure("2조원", "25%", "10조원"),
    "프리랜서": MarketFigure("15조원", "15%", "30조원"),
    # B2B
    "SaaS": MarketFigure("8조원", "25%", "30조원"),
    "클라우드": MarketFigure("10조원", "30%", "40조원"),
    "AI": MarketFigure("5조원", "40%", "50조원"),
    "빅데이터": MarketFigure("3조원", "20%", "15조원"),
}

MARKET_TRENDS: dict[str, str] = {
    "이커머스": "라이브커머스, 소셜커머스, D2C 브랜드가 급성장. 개인화 추천과 AI 도입 가속화.",
    "푸드테크": "밀키트, 간편식, 식물성 대체육 시장 확대. 친환경 포장재 수요 증가.",
    "에듀테크": "AI 튜터링, 메타버스 교육, 성인 리스킬링 시장 급성장. B2B 기업교육 확대.",
    "핀테크": "간편결제 보편화, BNPL 서비스 확산, 마이데이터 기반 맞춤 금융 성장.",
    "헬스테크": "비대면 진료 정착, 디지털 치료제 도입, 웨어러블 헬스케어 확산.",
    "HR테크": "AI 채용, 원격근무 솔루션, 직원경험 플랫폼 수요 증가.",
    "프롭테크": "부동산 중개 플랫폼 경쟁 심화, 공유오피스, 스마트홈 시장 성장.",
    "리걸테크": "AI 계약서 분석, 법률 챗봇, 온라인 법률서비스 도입 초기 단계.",
    "소셜미디어": "숏폼 동영상 중심 재편, 크리에이터 이코노미 성장.",
    "커뮤니티플랫폼": "버티컬 커뮤니티 세분화, 익명성 기반 플랫폼 성장.",
    "창업커뮤니티": "스타트업 네트워킹, 외주 매칭, 액셀러레이터 연계 플랫폼 성장.",
    "네트워킹": "비즈니스 네트워킹, 동종업계 커뮤니티, 사이드프로젝트 매칭 수요 증가.",
    "콘텐츠": "숏폼 콘텐츠, UGC 플랫폼, AI 생성 콘텐츠 시장 급성장.",
    "배달": "배달비 인상으로 성장 둔화, 퀵커머스와 신선식품 배달 경쟁.",
    "모빌리티": "전기차 충전 인프라, 자율주행, MaaS 플랫폼 투자 확대.",
    "SaaS": "노코드/로우코드 도구, 협업 솔루션, 버티컬 SaaS 성장.",
    "AI": "생성형 AI 도입 본격화, LLM 기반 서비스, AI 에이전트 시장 급성장.",
    "외주플랫폼": "IT 외주, 디자인 외주, 마케팅 외주 플랫폼 성장. 품질 인증 중요성 증가.",
    "프리랜서": "개발자, 디자이너, 마케터 중심 프리랜서 시장 확대. 긱 이코노미 정착.",
}

COMPETITORS: dict[str, tuple[str, ...]] = {
    "이커머스": ("쿠팡", "네이버쇼핑", "11번가", "G마켓", "옥션", "위메프", "티몬"),
    "패션": ("무신사", "지그재그", "에이블리", "29CM", "W컨셉", "하이버", "브랜디"),
    "중고거래": ("당근마켓", "번개장터", "중고나라", "헬로마켓"),
    "명품": ("발란", "트렌비", "머스트잇", "캐치패션"),
    "배달": ("배달의민족", "요기요", "쿠팡이츠"),
    "식품": ("마켓컬리", "오아시스마켓", "쿠팡프레시", "네이버장보기"),
    "밀키트": ("마이셰프", "프레시지", "얌샘", "잇츠온"),
    "금융": ("토스", "카카오뱅크", "케이뱅크", "네이버페이", "카카오페이"),
    "핀테크": ("토스", "뱅크샐러드", "핀다", "페이히어"),
    "투자": ("토스증권", "카카오페이증권", "삼성증권", "키움증권"),
    "보험": ("토스보험", "카카오페이손해보험", "캐롯손해보험"),
    "채용": ("원티드", "로켓펀치", "리멤버", "잡플래닛", "사람인", "잡코리아"),
    "HR테크": ("플렉스", "그리팅", "샤플", "원티드스페이스"),
    "외주": ("크몽", "숨고", "라우드소싱", "위시켓", "프리모아"),
    "프리랜서": ("크몽", "탈잉", "클래스101", "숨고"),
    "부동산": ("직방", "다방", "피터팬", "호갱노노", "네이버부동산"),
    "공유오피스": ("위워크", "패스트파이브", "스파크플러스", "마이워크스페이스"),
    "에듀테크": ("클래스101", "인프런", "유데미", "코세라", "패스트캠퍼스"),
    "온라인강의": ("클래스101", "탈잉", "프립", "인프런"),
    "코딩교육": ("코드스테이츠", "부트캠프", "스파르타코딩클럽", "위코드"),
    "헬스테크": ("닥터나우", "굿닥", "똑닥", "캐시워크"),
    "피트니스": ("프릭", "버핏서울", "힐리어리"),
    "모빌리티": ("카카오T", "타다", "쏘카", "그린카"),
    "카셰어링": ("쏘카", "그린카", "피플카"),
    "킥보드": ("킥고잉", "지쿠터", "빔", "라임"),
    "OTT": ("넷플릭스", "웨이브", "티빙", "쿠팡플레이", "왓챠"),
    "웹툰": ("네이버웹툰", "카카오페이지", "리디", "레진코믹스"),
    "음악": ("멜론", "지니뮤직", "플로", "스포티파이", "바이브"),
    "소셜미디어": ("인스타그램", "틱톡", "트위터", "스레드", "블루스카이"),
    "커뮤니티": ("에브리타임", "블라인드", "디시인사이드", "뽐뿌", "클리앙"),
    "창업커뮤니티": ("디스콰이어트", "스타트업베이", "비사이드", "오픈서베이"),
    "네트워킹": ("링크드인", "리멤버", "로켓펀치", "원티드"),
    "SaaS": ("채널톡", "노션", "잔디", "플렉스", "샤플"),
    "협업도구": ("노션", "슬랙", "잔디", "두레이", "콜라비"),
    "마케팅": ("채널톡", "그루비", "빅인사이트", "와이즐리"),
    "CRM": ("채널톡", "센드버드", "그루비"),
    "AI": ("뤼튼", "타입캐스트", "보이스루", "스켈터랩스"),
    "챗봇": ("채널톡", "깃플", "센드버드", "카카오i"),
}

COMPANY_INFO: dict[str, CompanyProfile] = {
    "토스": CompanyProfile(
        2013, "핀테크", "15조원+", "2000만+",
        ("간편송금", "투자", "보험", "대출", "신용점수"), "금융 슈퍼앱, 직관적인 UX",
    ),
    "쿠팡": CompanyProfile(
        2010, "이커머스", "60조원+", "3000만+",
        ("로켓배송", "로켓프레시", "쿠팡이츠", "쿠팡플레이"), "물류 인프라, 로켓배송",
    ),
    "당근마켓": CompanyProfile(
        2015, "중고거래", "3조원+", "3000만+",
        ("중고거래", "동네업체", "알바", "부동산"), "하이퍼로컬, 동네 신뢰 기반",
    ),
    "무신사": CompanyProfile(
        2001, "패션", "5조원+", "1000만+",
        ("패션 쇼핑", "스트릿 브랜드", "무신사 스탠다드"), "MZ세대 패션 플랫폼 1위",
    ),
    "배달의민족": CompanyProfile(
        2010, "배달", "4조원+ (인수)", "2000만+",
        ("음식 배달", "B마트", "배민상회"), "시장점유율 1위, 브랜드 인지도",
    ),
    "원티드": CompanyProfile(
        2015, "채용", "5000억원+", "500만+",
        ("AI 채용매칭", "커리어", "리퍼럴"), "IT/스타트업 채용 특화",
    ),
    "클래스101": CompanyProfile(
        2018, "에듀테크", "3000억원+", "200만+",
        ("온라인 클래스", "크리에이터 강의", "취미/자기계발"), "크리에이터 중심 교육 콘텐츠",
    ),
    "직방": CompanyProfile(
        2010, "부동산", "2조원+", "1000만+",
        ("원룸/오피스텔", "아파트", "빌라", "삼성SDS 인수"), "부동산 정보 플랫폼 1위",
    ),
    "채널톡": CompanyProfile(
        2014, "SaaS", "2000억원+", "10만+ 기업",
        ("고객상담", "마케팅 자동화", "CRM"), "B2B 올인원 솔루션",
    ),
    "디스콰이어트": CompanyProfile(
        2021, "창업커뮤니티", "비공개", "10만+",
        ("IT 제품 런칭", "스타트업 커뮤니티", "사이드프로젝트"), "프로덕트 메이커 커뮤니티",
    ),
}


def _lookup(table: Mapping[str, T], key: str) -> T | None:
    """Exact match first, then the first key containing or contained in ``key``."""
    if key in table:
        return table[key]
    for name, value in table.items():
        if name in key or key in name:
            return value
    return None


def _similar_keys(keys: list[str], keyword: str, limit: int = 3) -> list[str]:
    return [
        key
        for key in keys
        if key in keyword or keyword in key or any(char in key for char in keyword)
    ][:limit]


def find_similar_industries(keyword: str) -> list[str]:
    """Up to three industries sharing text with ``keyword``."""
    return _similar_keys(list(MARKET_DATA), keyword)


def get_market_size(industry: str) -> str:
    figure = _lookup(MARKET_DATA, industry)
    if figure is not None:
        return (
            "[시장 규모 정보]\n"
            f"산업: {industry}\n"
            f"시장 규모: {figure.size} ({figure.year}년 기준)\n"
            f"연평균 성장률: {figure.growth}\n"
            f"TAM (총 시장 규모): {figure.tam}"
        )

    similar = find_similar_industries(industry)
    if similar:
        return f"정확한 '{industry}' 데이터가 없습니다. 유사 산업: {', '.join(similar)}"
    return "해당 산업의 시장 데이터가 없습니다. 일반적인 추정 분석을 진행합니다."


def get_market_trends(industry: str) -> str:
    trend = _lookup(MARKET_TRENDS, industry)
    if trend is not None:
        return f"[시장 트렌드]\n산업: {industry}\n트렌드: {trend}"

    similar = find_similar_industries(industry)
    if similar:
        return f"정확한 '{industry}' 트렌드가 없습니다. 유사 산업: {', '.join(similar)}"
    return "해당 산업의 트렌드 데이터가 없습니다."


def search_similar_industries(keyword: str) -> str:
    matches = find_similar_industries(keyword)
    if matches:
        return f"관련 산업 분야: {', '.join(matches)}"
    return "관련 산업 분야를 찾을 수 없습니다."


def find_competitors(category: str) -> str:
    competitors = _lookup(COMPETITORS, category) or ()
    if competitors:
        lines = "\n".join(f"{i}. {name}" for i, name in enumerate(competitors, start=1))
        return f"[{category} 분야 주요 경쟁사]\n{lines}\n\n총 {len(competitors)}개 서비스"

    similar = _similar_keys(list(COMPETITORS), category)
    if similar:
        return f"정확한 '{category}' 분야가 없습니다. 유사 분야: {', '.join(similar)}"
    return "해당 분야의 경쟁사 데이터가 없습니다."


def get_competitor_info(name: str) -> str:
    info = COMPANY_INFO.get(name)
    if info is None:
        return f"{name}의 상세 정보가 없습니다."
    return (
        f"[{name} 상세 정보]\n"
        f"설립: {info.founded}년\n"
        f"분야: {info.category}\n"
        f"기업가치: {info.valuation}\n"
        f"사용자: {info.users}\n"
        f"주요 기능: {', '.join(info.features)}\n"
        f"강점: {info.strength}"
    )


def _function_tool(name: str, description: str, param: str, param_description: str) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {param: {"type": "string", "description": param_description}},
                "required": [param],
            },
        },
    }


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    _function_tool(
        "get_market_size",
        "한국 산업별 시장 규모와 성장률을 조회합니다",
        "industry",
        "산업 분야명 (예: 이커머스, 에듀테크, SaaS)",
    ),
    _function_tool(
        "get_market_trends",
        "한국 산업별 최신 시장 트렌드를 조회합니다",
        "industry",
        "산업 분야명 (예: 이커머스, 에듀테크, SaaS)",
    ),
    _function_tool(
        "search_similar_industries",
        "키워드와 관련된 산업 분야를 검색합니다",
        "keyword",
        "검색 키워드 (예: 교육, 금융, 배달)",
    ),
    _function_tool(
        "find_competitors",
        "사업 분야별 주요 경쟁사 목록을 조회합니다",
        "category",
        "사업 분야 (예: 이커머스, 핀테크, 채용)",
    ),
    _function_tool(
        "get_competitor_info",
        "특정 기업/서비스의 상세 정보를 조회합니다",
        "name",
        "기업명 (예: 토스, 쿠팡, 당근마켓)",
    ),
]

TOOL_HANDLERS: dict[str, tuple[str, Callable[[str], str]]] = {
    "get_market_size": ("industry", get_market_size),
    "get_market_trends": ("industry", get_market_trends),
    "search_similar_industries": ("keyword", search_similar_industries),
    "find_competitors": ("category", find_competitors),
    "get_competitor_info": ("name", get_competitor_info),
}


def execute_tool(name: str, arguments: Mapping[str, Any]) -> str:
    """Run one tool call and return its text result.

    Unknown tools and missing arguments are reported back to the model as
    text rather than raised.
    """
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        logger.warning("Unknown tool requested", tool=name)
        return f"알 수 없는 도구입니다: {name}"

    param, func = handler
    value = arguments.get(param)
    if not isinstance(value, str) or not value.strip():
        return f"'{param}' 값이 필요합니다."

    result = func(value.strip())
    logger.debug("Tool executed", tool=name, argument=value)
    return result
