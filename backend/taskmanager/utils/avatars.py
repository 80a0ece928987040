"""Initials avatars served by ui-avatars.com."""

from urllib.parse import urlencode

AVATAR_BASE_URL = "https://ui-avatars.com/api/"

ROLE_COLORS = {
    "admin": ("e74c3c", "ffffff"),
    "user": ("27ae60", "ffffff"),
}

THEME_COLORS = {
    "light": ("3498db", "ffffff"),
    "dark": ("2c3e50", "ecf0f1"),
}

VARIATION_BACKGROUNDS = [
    ("3498db", "Blue"),
    ("9b59b6", "Purple"),
    ("e74c3c", "Red"),
    ("f39c12", "Orange"),
    ("27ae60", "Green"),
    ("34495e", "Dark Gray"),
]


def generate_avatar(
    provided: str | None,
    name: str,
    *,
    theme: str | None = None,
    is_admin: bool | None = None,
    background: str | None = None,
    color: str | None = None,
    size: int = 150,
) -> str:
    """Return ``provided`` when it is an http(s) URL, else an initials avatar URL.

    Colors come from the role when ``is_admin`` is given, otherwise from the
    theme (unknown themes fall back to light); explicit colors win over both.
    """
    if provided and provided.startswith("http"):
        return provided

    bg, fg = THEME_COLORS["light"]
    if is_admin is not None:
        bg, fg = ROLE_COLORS["admin" if is_admin else "user"]
    elif theme:
        bg, fg = THEME_COLORS.get(theme, THEME_COLORS["light"])

    params = {
        "name": name.strip(),
        "size": size,
        "background": background or bg,
        "color": color or fg,
        "bold": "true",
        "format": "png",
        "font-size": 0.5,
        "length": 2,
        "rounded": "true",
        "uppercase": "true",
    }
    return f"{AVATAR_BASE_URL}?{urlencode(params)}"


def avatar_variations(name: str) -> list[dict]:
    return [
        {
            "id": index,
            "name": label,
            "url": generate_avatar(None, name, background=bg, color="ffffff"),
            "background_color": f"#{bg}",
        }
        for index, (bg, label) in enumerate(VARIATION_BACKGROUNDS, start=1)
    ]
