import asyncio
import copy
import logging
from typing import Any, Dict

from constants import ABOUT_CONTENT_KEY
from errors import BackendError, InvalidRequestError
from repositories.contact_repository import insert_message
from schemas import ContactRequest
from services import settings_service
from validators import sanitize_string

logger = logging.getLogger("pizza-delivery")

DEFAULT_CONTACT_SUBJECT = "Contato via site"

DEFAULT_ABOUT_CONTENT: Dict[str, Any] = {
    "hero": {
        "title": "Nossa História",
        "subtitle": "Tradição e Sabor desde 2010",
        "description": (
            "Somos uma pizzaria familiar que nasceu do sonho de compartilhar o "
            "verdadeiro sabor da pizza italiana com nossa comunidade."
        ),
        "image": "/placeholder.svg?height=600&width=800",
    },
    "story": {
        "title": "Como Tudo Começou",
        "paragraphs": [
            "Em 2010 nasceu a nossa pizzaria, com poucas mesas e um forno a lenha tradicional.",
            "Massa artesanal, ingredientes frescos selecionados diariamente e muito carinho em cada pizza.",
            "Hoje atendemos toda a região com nosso serviço de delivery.",
        ],
        "image": "/placeholder.svg?height=500&width=600",
    },
    "values": {
        "title": "Nossos Valores",
        "subtitle": "Os princípios que nos guiam todos os dias",
        "values": [
            {"icon": "heart", "title": "Paixão pela Qualidade", "description": "Ingredientes selecionados e muito carinho."},
            {"icon": "star", "title": "Excelência no Atendimento", "description": "Tratamos cada cliente como família."},
            {"icon": "users", "title": "Compromisso com a Comunidade", "description": "Contribuímos para o bem-estar local."},
            {"icon": "leaf", "title": "Sustentabilidade", "description": "Embalagens eco-friendly e ingredientes locais."},
        ],
    },
    "team": {
        "title": "Nossa Equipe",
        "subtitle": "As pessoas que fazem a magia acontecer",
        "members": [],
    },
    "contact": {
        "title": "Venha nos Visitar",
        "subtitle": "Estamos sempre prontos para recebê-lo",
        "address": "Rua das Pizzas, 123 - Centro",
        "phone": "(11) 99999-9999",
        "email": "contato@williamdiskpizza.com",
        "hours": "Seg-Dom: 18h às 23h",
    },
}


async def send_contact_message(payload: ContactRequest) -> Dict[str, Any]:
    name = sanitize_string(payload.name)
    message = sanitize_string(payload.message)
    if not name or not message:
        raise InvalidRequestError("Name, email and message are required")
    record = {
        "name": name,
        "email": payload.email,
        "subject": sanitize_string(payload.subject) or DEFAULT_CONTACT_SUBJECT,
        "message": message,
    }
    try:
        row = await asyncio.to_thread(insert_message, record)
    except Exception as exc:  # pragma: no cover - network/database error
        logger.exception("Failed to store contact message")
        raise BackendError("Failed to send message") from exc
    return row


async def get_about_content() -> Dict[str, Any]:
    stored = await settings_service.get_setting(ABOUT_CONTENT_KEY)
    if isinstance(stored, dict) and stored:
        return stored
    return copy.deepcopy(DEFAULT_ABOUT_CONTENT)


async def update_about_content(content: Dict[str, Any]) -> Dict[str, Any]:
    if not content:
        raise InvalidRequestError("Content must not be empty")
    await settings_service.save_settings({ABOUT_CONTENT_KEY: content})
    return content
