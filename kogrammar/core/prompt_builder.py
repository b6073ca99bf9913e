"""Prompt construction for the correction analysis model."""

from kogrammar.models.analysis import CorrectionContext
from kogrammar.models.correction import StateTag

ANALYSIS_SYSTEM_PROMPT = """당신은 한국어 맞춤법 검사 전문가입니다. 주어진 텍스트와 맞춤법 오류들을 분석하여 가장 적절한 수정사항을 선택해주세요.

다음 규칙을 따라주세요:
1. 문맥에 가장 적합한 수정안을 선택하세요
2. 고유명사, URL, 이메일, 전문용어는 예외처리를 고려하세요
3. 애매한 경우나 원문이 적절한 경우 원본유지를 선택하세요
4. 각 선택에 대한 신뢰도(0-100)와 간단한 이유를 제공하세요

예외처리 (isExceptionProcessed: true): 향후 검사에서 제외할 고유명사, 브랜드명, 프로그래밍 용어, 외국어 표기, 인명/지명
원본유지 (isExceptionProcessed: false): 이번에만 유지할 일반적인 표현, 확신이 없는 경우

응답 규칙:
- selectedValue에는 반드시 제공된 수정안 중 하나 또는 원본 텍스트만 입력하세요
- "원본유지", "예외처리" 같은 명령어를 사용하지 마세요
- 원본을 유지하거나 예외처리하려면 원본 텍스트를 selectedValue에 그대로 입력하세요
- 괄호나 설명을 추가하지 마세요: "휴고" (O) vs "휴고(Hugo)" (X)
- 오직 JSON 배열만 응답하세요. 마크다운 코드 블록을 사용하지 마세요.

응답 형식 예시:
[
  {"correctionIndex": 0, "selectedValue": "따라", "isExceptionProcessed": false, "confidence": 90, "reasoning": "문맥상 적절한 표현"},
  {"correctionIndex": 1, "selectedValue": "슬랙", "isExceptionProcessed": true, "confidence": 100, "reasoning": "브랜드명"}
]"""

STATE_NAMES_KO = {
    StateTag.ERROR: "오류",
    StateTag.CORRECTED: "수정",
    StateTag.EXCEPTION_PROCESSED: "예외처리",
    StateTag.ORIGINAL_KEPT: "원본유지",
}


def _format_context(number: int, ctx: CorrectionContext) -> str:
    lines = [
        f'{number}. 오류: "{ctx.original}"',
        f"   수정안: [{', '.join(ctx.corrected)}]",
        f"   설명: {ctx.help}",
        f'   문맥: "{ctx.full_context}"',
    ]
    if ctx.current_state and ctx.current_value:
        state_name = STATE_NAMES_KO.get(ctx.current_state, str(ctx.current_state))
        lines.append(f'   현재 상태: {state_name} (값: "{ctx.current_value}")')
    if ctx.is_likely_proper_noun and ctx.sentence_context:
        lines.append(f'   고유명사 가능성 높음 - 전체 문장: "{ctx.sentence_context}"')
    return "\n".join(lines)


def build_analysis_prompt(
    contexts: list[CorrectionContext],
    morpheme_summary: str | None = None,
) -> tuple[str, str]:
    """Build the (system_message, user_message) pair for one batch.

    Contexts are numbered from 0 within the batch; the model answers with
    those batch-local indexes.
    """
    count = len(contexts)
    prompt_parts = [f"총 {count}개의 맞춤법 오류 분석:", ""]
    prompt_parts.append("\n\n".join(_format_context(i, ctx) for i, ctx in enumerate(contexts)))

    if morpheme_summary:
        prompt_parts.extend([
            "",
            f"품사 정보: {morpheme_summary}",
            "품사를 고려한 문법적 교정을 선택하세요.",
        ])

    if any(ctx.is_likely_proper_noun for ctx in contexts):
        prompt_parts.extend([
            "",
            "고유명사 처리: 재사용 가능한 고유한 용어는 예외처리, 일반적인 명사나 표현은 원본유지를 선택하세요.",
        ])

    prompt_parts.extend([
        "",
        "중요 응답 규칙:",
        f"1. 위의 모든 {count}개 오류에 대해 반드시 분석 결과를 제공해주세요.",
        f"2. correctionIndex는 반드시 0부터 {count - 1}까지의 순서를 사용하세요.",
        "3. selectedValue는 반드시 제공된 수정안 중 하나 또는 원본 텍스트와 정확히 일치해야 합니다.",
        "4. 특수문자와 공백/띄어쓰기를 정확히 복사해서 사용하세요.",
        "5. 누락된 오류가 있으면 안 됩니다.",
    ])

    return ANALYSIS_SYSTEM_PROMPT, "\n".join(prompt_parts)
