from finanzas.database.repositories import AdminRepository

DEFAULT_CATEGORIES = {
    "income": [
        {"name": "Salario", "icon": "briefcase", "color": "#22C55E"},
        {"name": "Freelance", "icon": "laptop", "color": "#10B981"},
        {"name": "Inversiones", "icon": "trending-up", "color": "#059669"},
        {"name": "Otros Ingresos", "icon": "plus-circle", "color": "#047857"},
    ],
    "expense": [
        {"name": "Alimentación", "icon": "utensils", "color": "#EF4444"},
        {"name": "Transporte", "icon": "car", "color": "#F97316"},
        {"name": "Servicios", "icon": "home", "color": "#F59E0B"},
        {"name": "Entretenimiento", "icon": "film", "color": "#8B5CF6"},
        {"name": "Salud", "icon": "heart", "color": "#EC4899"},
        {"name": "Educación", "icon": "book", "color": "#3B82F6"},
        {"name": "Otros Gastos", "icon": "more-horizontal", "color": "#6B7280"},
    ],
}


def provision_default_categories(user_id: str, repo: AdminRepository = None):
    """
    Seeds a user's default categories.

    Idempotent: names already present for the same type (compared
    case-insensitively) are skipped. Does not commit.
    """
    repo = repo or AdminRepository()
    existing = {(c.type, c.name.strip().lower()) for c in repo.categories_for(user_id)}

    created = []
    for type_, defaults in DEFAULT_CATEGORIES.items():
        for item in defaults:
            if (type_, item["name"].lower()) in existing:
                continue
            created.append(repo.add_category(user_id, item["name"], type_, item["icon"], item["color"]))
            existing.add((type_, item["name"].lower()))
    return created


def ensure_expense_category(user_id: str, name: str, repo: AdminRepository = None):
    """Create an expense category named like a budget pocket if none exists."""
    repo = repo or AdminRepository()
    wanted = name.strip().lower()
    for category in repo.categories_for(user_id):
        if category.type == "expense" and category.name.strip().lower() == wanted:
            return None
    return repo.add_category(user_id, name.strip(), "expense", "tag", "#D4AF37")
