"""
Email templates for IRL.

Inline CSS only, for email client compatibility. Each template function
returns (subject, html_body, text_body).
"""

from __future__ import annotations

BG_PAGE = "#F5F3EF"
BG_CARD = "#FFFFFF"
ACCENT = "#2F6F5E"
TEXT_PRIMARY = "#1F2328"
TEXT_SECONDARY = "#59636E"
BORDER = "#E4E1DA"


def _base_layout(content: str, app_name: str = "IRL") -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{app_name}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BG_PAGE}; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: {BG_PAGE};">
        <tr>
            <td align="center" style="padding: 40px 20px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="max-width: 600px; width: 100%;">
                    <tr>
                        <td align="center" style="padding-bottom: 24px;">
                            <span style="font-size: 24px; font-weight: 700; color: {ACCENT};">{app_name}</span>
                        </td>
                    </tr>
                    <tr>
                        <td style="background-color: {BG_CARD}; border: 1px solid {BORDER}; border-radius: 12px; padding: 36px 32px;">
                            {content}
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding-top: 24px;">
                            <p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
                                This email was sent by {app_name}.<br>
                                If you didn't expect it, you can safely ignore it.
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""


def _button(url: str, label: str) -> str:
    return f"""\
<table role="presentation" cellspacing="0" cellpadding="0" border="0" style="margin: 28px auto;">
    <tr>
        <td align="center" style="background-color: {ACCENT}; border-radius: 8px;">
            <a href="{url}" target="_blank" style="display: inline-block; padding: 14px 32px; color: #FFFFFF; font-size: 16px; font-weight: 600; text-decoration: none; border-radius: 8px;">
                {label}
            </a>
        </td>
    </tr>
</table>"""


def _fallback_link(url: str) -> str:
    return f"""\
<hr style="border: none; border-top: 1px solid {BORDER}; margin: 24px 0;">
<p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
    If the button doesn't work, copy and paste this URL:<br>
    <a href="{url}" style="color: {ACCENT}; word-break: break-all;">{url}</a>
</p>"""


def verify_email(verify_url: str) -> tuple[str, str, str]:
    """
    Account email verification, sent on registration and on resend.

    Returns:
        (subject, html_body, text_body)
    """
    subject = "Verify your IRL account email"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 22px; font-weight: 700; margin: 0 0 16px 0;">Hi there!</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 24px 0;">
    Please confirm your email address to complete your IRL account setup.
</p>
{_button(verify_url, "Verify Email Address")}
<p style="color: {TEXT_SECONDARY}; font-size: 13px; line-height: 1.5; margin: 24px 0 0 0;">
    If you did not create an account, you can ignore this message.
</p>
{_fallback_link(verify_url)}"""
    html_body = _base_layout(content)
    text_body = (
        "Hi there!\n\n"
        "Please confirm your email address to complete your IRL account setup.\n\n"
        f"Verification link: {verify_url}\n\n"
        "If you did not create an account, you can ignore this message."
    )
    return subject, html_body, text_body


def magic_link(login_url: str, expires_minutes: int = 15) -> tuple[str, str, str]:
    """
    Passwordless sign-in link.

    Returns:
        (subject, html_body, text_body)
    """
    subject = "Your IRL sign-in link"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 22px; font-weight: 700; margin: 0 0 16px 0;">Sign in to IRL</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 24px 0;">
    Click the button below to sign in. The link can only be used once.
</p>
{_button(login_url, "Sign In")}
<p style="color: {TEXT_SECONDARY}; font-size: 13px; line-height: 1.5; margin: 24px 0 0 0;">
    This link expires in <strong style="color: {TEXT_PRIMARY};">{expires_minutes} minutes</strong>.
    If you didn't request it, no action is needed.
</p>
{_fallback_link(login_url)}"""
    html_body = _base_layout(content)
    text_body = (
        "Sign in to IRL\n\n"
        f"Use this link to sign in:\n\n{login_url}\n\n"
        f"This link expires in {expires_minutes} minutes and can only be used once.\n\n"
        "If you didn't request it, no action is needed."
    )
    return subject, html_body, text_body


def invitation(register_url: str, inviter_email: str) -> tuple[str, str, str]:
    """
    Invitation from an existing member to create an account.

    Returns:
        (subject, html_body, text_body)
    """
    subject = "You're invited to join IRL!"
    content = f"""\
<h1 style="color: {TEXT_PRIMARY}; font-size: 22px; font-weight: 700; margin: 0 0 16px 0;">Hi there!</h1>
<p style="color: {TEXT_SECONDARY}; font-size: 16px; line-height: 1.6; margin: 0 0 24px 0;">
    <strong style="color: {TEXT_PRIMARY};">{inviter_email}</strong> has invited you to join our community directory.
    Click the button below to create your account and get started.
</p>
{_button(register_url, "Create your account")}
<p style="color: {TEXT_SECONDARY}; font-size: 13px; line-height: 1.5; margin: 24px 0 0 0;">
    Looking forward to seeing you in the community!
</p>
{_fallback_link(register_url)}"""
    html_body = _base_layout(content)
    text_body = (
        "Hi there!\n\n"
        f"{inviter_email} has invited you to join our community directory.\n\n"
        "Click the link below to create your account and get started.\n\n"
        f"Registration link: {register_url}\n\n"
        "Looking forward to seeing you in the community!"
    )
    return subject, html_body, text_body
