"""Cookie banner copy returned alongside the banner decision."""

from __future__ import annotations

DEFAULT_LANGUAGE = "en"

TRANSLATIONS: dict[str, dict[str, dict[str, str]]] = {
    "en": {
        "cookieBanner": {
            "title": "We value your privacy",
            "description": (
                "This site uses cookies to improve your browsing experience, "
                "analyze site traffic, and show personalized content."
            ),
            "acceptAll": "Accept All",
            "rejectAll": "Reject All",
            "customize": "Customize",
        },
    },
    "de": {
        "cookieBanner": {
            "title": "Wir respektieren Ihre Privatsphäre",
            "description": (
                "Diese Website verwendet Cookies, um Ihr Surferlebnis zu verbessern, "
                "den Seitenverkehr zu analysieren und personalisierte Inhalte anzuzeigen."
            ),
            "acceptAll": "Alle akzeptieren",
            "rejectAll": "Alle ablehnen",
            "customize": "Anpassen",
        },
    },
    "fr": {
        "cookieBanner": {
            "title": "Nous respectons votre vie privée",
            "description": (
                "Ce site utilise des cookies pour améliorer votre expérience de navigation, "
                "analyser le trafic du site et afficher du contenu personnalisé."
            ),
            "acceptAll": "Tout accepter",
            "rejectAll": "Tout refuser",
            "customize": "Personnaliser",
        },
    },
    "es": {
        "cookieBanner": {
            "title": "Valoramos tu privacidad",
            "description": (
                "Este sitio utiliza cookies para mejorar tu experiencia de navegación, "
                "analizar el tráfico del sitio y mostrar contenido personalizado."
            ),
            "acceptAll": "Aceptar todo",
            "rejectAll": "Rechazar todo",
            "customize": "Personalizar",
        },
    },
}


def preferred_language(accept_language: str | None) -> str:
    """Primary subtag of the first Accept-Language entry we have copy for."""
    if not accept_language:
        return DEFAULT_LANGUAGE
    for entry in accept_language.split(","):
        tag = entry.split(";")[0].strip().lower()
        primary = tag.split("-")[0]
        if primary in TRANSLATIONS:
            return primary
    return DEFAULT_LANGUAGE


def get_translations(accept_language: str | None) -> dict[str, object]:
    language = preferred_language(accept_language)
    return {"language": language, **TRANSLATIONS[language]}
