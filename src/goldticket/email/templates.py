"""
Account email bodies.

Every template returns ``(subject, html_body, text_body)``. HTML uses inline
styles only since most mail clients drop ``<style>`` blocks.
"""

from __future__ import annotations

from html import escape

APP_NAME = "Gold Ticket"

_PALETTE = {
    "page": "#FBF7EC",
    "card": "#FFFFFF",
    "gold": "#C9971C",
    "ink": "#2B2118",
    "muted": "#6B5E4F",
    "rule": "#EADFC4",
}

_FONT = "-apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif"


def _heading(title: str) -> str:
    return f'<h1 style="color:{_PALETTE["ink"]};font-size:22px;margin:0 0 16px;">{title}</h1>'


def _paragraph(body: str, size: int = 16) -> str:
    return f'<p style="color:{_PALETTE["muted"]};font-size:{size}px;line-height:1.6;margin:0 0 16px;">{body}</p>'


def _button(url: str, label: str) -> str:
    style = (
        f"display:inline-block;padding:14px 32px;border-radius:8px;background:{_PALETTE['gold']};"
        "color:#FFFFFF;font-size:16px;font-weight:600;text-decoration:none;"
    )
    return f'<p style="text-align:center;margin:28px 0;"><a href="{url}" style="{style}">{label}</a></p>'


def _page(*blocks: str) -> str:
    """Centre the blocks in a bordered card under the app name."""
    card = (
        f"background:{_PALETTE['card']};border:1px solid {_PALETTE['rule']};"
        "border-radius:12px;padding:36px 32px;"
    )
    body = "\n".join(blocks)
    return (
        '<!DOCTYPE html>\n<html lang="en"><head><meta charset="UTF-8">'
        f"<title>{APP_NAME}</title></head>\n"
        f'<body style="margin:0;padding:40px 20px;background:{_PALETTE["page"]};font-family:{_FONT};">\n'
        '<div style="max-width:600px;margin:0 auto;">\n'
        f'<div style="text-align:center;padding-bottom:24px;font-size:22px;font-weight:700;'
        f'color:{_PALETTE["gold"]};">{APP_NAME}</div>\n'
        f'<div style="{card}">\n{body}\n</div>\n'
        f'<p style="text-align:center;color:{_PALETTE["muted"]};font-size:12px;">'
        "If you didn't expect this email, you can safely ignore it.</p>\n"
        "</div>\n</body></html>"
    )


def _expiry_text(minutes: int) -> str:
    if minutes % 60 == 0:
        hours = minutes // 60
        return "1 hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minutes"


def password_reset(reset_url: str, expires_minutes: int = 60) -> tuple[str, str, str]:
    """Link to the reset page; ``reset_url`` already carries the token."""
    expires = _expiry_text(expires_minutes)
    url = escape(reset_url, quote=True)
    html = _page(
        _heading("Reset your password"),
        _paragraph("Someone asked to reset the password for your account. Use the button below to choose a new one."),
        _button(url, "Reset Password"),
        _paragraph(f"This link expires in <strong>{expires}</strong>.", size=13),
        _paragraph(f'If the button doesn\'t work, paste this URL into your browser:<br><a href="{url}">{url}</a>', size=12),
    )
    text = (
        f"Reset your password\n\n"
        f"Someone asked to reset the password for your {APP_NAME} account.\n\n"
        f"Open this link to set a new password:\n\n{reset_url}\n\n"
        f"This link expires in {expires}.\n\n"
        f"If you didn't ask for this, ignore this email and your password stays the same.\n"
    )
    return "Reset your Gold Ticket password", html, text


def password_changed(username: str) -> tuple[str, str, str]:
    html = _page(
        _heading("Password changed"),
        _paragraph(f"Hi {escape(username)},"),
        _paragraph("The password for your account was just changed. If this wasn't you, reset it again right away."),
    )
    text = (
        f"Hi {username},\n\n"
        f"The password for your {APP_NAME} account was just changed.\n"
        f"If this wasn't you, reset it again right away.\n"
    )
    return "Your Gold Ticket password was changed", html, text
