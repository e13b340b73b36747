"""Translation lookup for user-facing messages (en, es, fr)"""

from typing import Optional

DEFAULT_LANGUAGE = "en"

CATALOGUES = {
    "en": {
        "study_started": "Study session started",
        "leisure_started": "Leisure session started: {0:.1f} min",
        "earned_leisure": "You earned {0:.1f} minutes of leisure",
        "earned_leisure_debt_paid": "You earned {0:.1f} minutes of leisure and paid off {1:.1f} minutes of debt",
        "session_too_short": "Session too short to record (minimum 1 minute)",
        "used_leisure": "You used {0:.1f} minutes of leisure",
        "leisure_stopped": "Leisure session stopped",
        "leisure_completed": "Leisure time is over! You used {0:.1f} minutes",
        "recovered_leisure": "Recovered leisure session: {0:.1f} minutes used",
        "recovered_study": "Recovered study session: {0:.1f} minutes of leisure earned",
        "resumed_study": "Study session resumed after {0} minutes",
        "resumed_leisure": "Leisure session resumed with {0} seconds left",
        "borrowed": "You borrowed {0:.1f} minutes. Repay {1:.1f} minutes of study",
        "history_cleared": "History cleared",
        "balance_reset": "Balance reset to zero",
        "settings_saved": "Settings saved",
        "settings_reset": "Settings restored to defaults",
        "not_enough_leisure": "Not enough leisure time available",
        "session_active": "A session is already running. Stop it first",
        "no_active_session": "No session is running",
        "exceeds_debt_limit": "Exceeds debt limit (max {0:g} min)",
        "minimum_loan": "Minimum loan is 1 minute",
        "positive_balance": "You cannot borrow while you have a positive balance",
        "cannot_clear_debt": "Cannot clear history while you owe study time",
        "invalid_config": "Invalid settings: {0}",
        "custom_time_minimum": "Minimum leisure session is 1 minute",
        "custom_time_exceeds": "Requested time exceeds your available leisure",
    },
    "es": {
        "study_started": "Sesión de estudio iniciada",
        "leisure_started": "Sesión de ocio iniciada: {0:.1f} min",
        "earned_leisure": "Ganaste {0:.1f} minutos de ocio",
        "earned_leisure_debt_paid": "Ganaste {0:.1f} minutos de ocio y pagaste {1:.1f} minutos de deuda",
        "session_too_short": "Sesión demasiado corta para registrarla (mínimo 1 minuto)",
        "used_leisure": "Usaste {0:.1f} minutos de ocio",
        "leisure_stopped": "Sesión de ocio detenida",
        "leisure_completed": "¡Se acabó el tiempo de ocio! Usaste {0:.1f} minutos",
        "recovered_leisure": "Sesión de ocio recuperada: {0:.1f} minutos usados",
        "recovered_study": "Sesión de estudio recuperada: {0:.1f} minutos de ocio ganados",
        "resumed_study": "Sesión de estudio reanudada tras {0} minutos",
        "resumed_leisure": "Sesión de ocio reanudada con {0} segundos restantes",
        "borrowed": "Pediste prestados {0:.1f} minutos. Devuelve {1:.1f} minutos de estudio",
        "history_cleared": "Historial borrado",
        "balance_reset": "Saldo restablecido a cero",
        "settings_saved": "Configuración guardada",
        "settings_reset": "Configuración restablecida",
        "not_enough_leisure": "No tienes suficiente tiempo de ocio",
        "session_active": "Ya hay una sesión en curso. Detenla primero",
        "no_active_session": "No hay ninguna sesión en curso",
        "exceeds_debt_limit": "Supera el límite de deuda (máx. {0:g} min)",
        "minimum_loan": "El préstamo mínimo es de 1 minuto",
        "positive_balance": "No puedes pedir prestado con saldo positivo",
        "cannot_clear_debt": "No puedes borrar el historial mientras debas tiempo de estudio",
        "invalid_config": "Configuración no válida: {0}",
        "custom_time_minimum": "La sesión de ocio mínima es de 1 minuto",
        "custom_time_exceeds": "El tiempo solicitado supera tu ocio disponible",
    },
    "fr": {
        "study_started": "Session d'étude démarrée",
        "leisure_started": "Session de loisir démarrée : {0:.1f} min",
        "earned_leisure": "Vous avez gagné {0:.1f} minutes de loisir",
        "earned_leisure_debt_paid": "Vous avez gagné {0:.1f} minutes de loisir et remboursé {1:.1f} minutes de dette",
        "session_too_short": "Session trop courte pour être enregistrée (minimum 1 minute)",
        "used_leisure": "Vous avez utilisé {0:.1f} minutes de loisir",
        "leisure_stopped": "Session de loisir arrêtée",
        "leisure_completed": "Le temps de loisir est écoulé ! Vous avez utilisé {0:.1f} minutes",
        "recovered_leisure": "Session de loisir récupérée : {0:.1f} minutes utilisées",
        "recovered_study": "Session d'étude récupérée : {0:.1f} minutes de loisir gagnées",
        "resumed_study": "Session d'étude reprise après {0} minutes",
        "resumed_leisure": "Session de loisir reprise, {0} secondes restantes",
        "borrowed": "Vous avez emprunté {0:.1f} minutes. Remboursez {1:.1f} minutes d'étude",
        "history_cleared": "Historique effacé",
        "balance_reset": "Solde remis à zéro",
        "settings_saved": "Paramètres enregistrés",
        "settings_reset": "Paramètres par défaut restaurés",
        "not_enough_leisure": "Pas assez de temps de loisir disponible",
        "session_active": "Une session est déjà en cours. Arrêtez-la d'abord",
        "no_active_session": "Aucune session en cours",
        "exceeds_debt_limit": "Dépasse la limite de dette (max {0:g} min)",
        "minimum_loan": "Le prêt minimum est de 1 minute",
        "positive_balance": "Impossible d'emprunter avec un solde positif",
        "cannot_clear_debt": "Impossible d'effacer l'historique tant que vous devez du temps d'étude",
        "invalid_config": "Paramètres invalides : {0}",
        "custom_time_minimum": "La session de loisir minimale est de 1 minute",
        "custom_time_exceeds": "Le temps demandé dépasse votre loisir disponible",
    },
}


def translate(key: str, *args, lang: str = DEFAULT_LANGUAGE) -> str:
    """
    Look up a message and format it with positional args.

    Falls back to English, then to the key itself.

    Example:
        >>> translate("borrowed", 10, 22.0, lang="en")
        'You borrowed 10.0 minutes. Repay 22.0 minutes of study'
    """
    template = CATALOGUES.get(lang, {}).get(key) or CATALOGUES[DEFAULT_LANGUAGE].get(key)
    if template is None:
        return key
    try:
        return template.format(*args)
    except (IndexError, ValueError):
        return template


def negotiate_language(query_lang: Optional[str], accept_language: Optional[str], default: str = DEFAULT_LANGUAGE) -> str:
    """Pick a supported language from ?lang= first, then Accept-Language"""
    if query_lang and query_lang.lower() in CATALOGUES:
        return query_lang.lower()

    for part in (accept_language or "").split(","):
        tag = part.split(";")[0].strip().lower()
        primary = tag.split("-")[0]
        if primary in CATALOGUES:
            return primary

    return default if default in CATALOGUES else DEFAULT_LANGUAGE
