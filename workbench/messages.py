"""
User-facing error strings.

Every failure returned by the HTTP surface carries an ``error`` string in
the caller's language. Brazilian Portuguese is the default locale; English
is selected from ``Accept-Language`` or the WORKBENCH_LOCALE setting.
"""
from typing import Dict, Optional

DEFAULT_LOCALE = "pt-BR"

RATE_LIMIT_DOCS_URL = "https://ai.google.dev/gemini-api/docs/rate-limits"

CATALOG: Dict[str, Dict[str, str]] = {
    "pt": {
        "internal_error": "Ocorreu um erro interno no servidor.",
        "internal_error_evaluation": "Ocorreu um erro interno no servidor de avaliação.",
        "invalid_request": "O corpo da requisição não é um JSON válido.",
        "unconfigured": "A chave de API do {service} não foi configurada no servidor.",
        "missing_prompt": "Nenhum prompt foi fornecido para análise.",
        "missing_conversation_fields": "Prompt do usuário e/ou mensagem não fornecidos.",
        "missing_evaluation_fields": "Dados incompletos para avaliação.",
        "missing_query": "Nenhuma descrição de automação foi fornecida.",
        "upstream_error": "Falha na comunicação com a API do {service}. Status: {status}",
        "upstream_error_analysis": "Falha na comunicação com a API do {service} para análise. Status: {status}",
        "upstream_error_evaluation": "Falha na comunicação com a API do {service} para avaliação. Status: {status}",
        "upstream_error_with_body": "Falha na comunicação com a API do {service}. Status: {status}. Detalhes: {body}",
        "empty_analysis": "Não foi possível obter uma análise da IA.",
        "empty_conversation": "Não foi possível obter uma resposta da IA do Dify.",
        "empty_evaluation": "Não foi possível obter uma avaliação da IA.",
        "empty_workflow": "Não foi possível gerar o fluxo N8N.",
        "malformed_json": "A resposta da IA não estava em um formato JSON válido.",
        "malformed_evaluation": "A resposta da IA de avaliação não estava em um formato JSON válido.",
        "rate_limited": "Muitas solicitações em pouco tempo. Aguarde alguns minutos antes de tentar novamente.",
        "quota_exceeded": (
            "Limite de uso da API atingido. O plano gratuito permite apenas 50 solicitações por dia. "
            "Aguarde até amanhã ou considere fazer upgrade para um plano pago."
        ),
        "quota_details": "Para mais informações sobre limites da API Gemini, visite: {url}",
        "evaluation_failed": "Erro ao avaliar a resposta.",
    },
    "en": {
        "internal_error": "An internal server error occurred.",
        "internal_error_evaluation": "An internal error occurred in the evaluation server.",
        "invalid_request": "The request body is not valid JSON.",
        "unconfigured": "The {service} API key is not configured on the server.",
        "missing_prompt": "No prompt was provided for analysis.",
        "missing_conversation_fields": "User prompt and/or message not provided.",
        "missing_evaluation_fields": "Incomplete data for evaluation.",
        "missing_query": "No automation description was provided.",
        "upstream_error": "Communication with the {service} API failed. Status: {status}",
        "upstream_error_analysis": "Communication with the {service} API for analysis failed. Status: {status}",
        "upstream_error_evaluation": "Communication with the {service} API for evaluation failed. Status: {status}",
        "upstream_error_with_body": "Communication with the {service} API failed. Status: {status}. Details: {body}",
        "empty_analysis": "Could not obtain an analysis from the AI.",
        "empty_conversation": "Could not obtain an answer from the Dify agent.",
        "empty_evaluation": "Could not obtain an evaluation from the AI.",
        "empty_workflow": "Could not generate the N8N workflow.",
        "malformed_json": "The AI response was not valid JSON.",
        "malformed_evaluation": "The evaluation AI response was not valid JSON.",
        "rate_limited": "Too many requests in a short time. Wait a few minutes before trying again.",
        "quota_exceeded": (
            "API usage limit reached. The free tier only allows 50 requests per day. "
            "Wait until tomorrow or consider upgrading to a paid plan."
        ),
        "quota_details": "For more information about Gemini API limits, see: {url}",
        "evaluation_failed": "Error while evaluating the answer.",
    },
}


def resolve_locale(accept_language: Optional[str], default: str = DEFAULT_LOCALE) -> str:
    """Pick the first supported language from an Accept-Language header."""
    if accept_language:
        for part in accept_language.split(","):
            tag = part.split(";")[0].strip().lower()
            if tag[:2] in CATALOG:
                return tag[:2]
    fallback = (default or DEFAULT_LOCALE)[:2].lower()
    return fallback if fallback in CATALOG else "pt"


def render(key: str, locale: str = DEFAULT_LOCALE, **params) -> str:
    """Render a catalog message, falling back to Portuguese for unknown locales or keys."""
    lang = (locale or DEFAULT_LOCALE)[:2].lower()
    catalog = CATALOG.get(lang, CATALOG["pt"])
    template = catalog.get(key) or CATALOG["pt"].get(key) or CATALOG["pt"]["internal_error"]
    try:
        return template.format(**params)
    except (KeyError, IndexError):
        return template
