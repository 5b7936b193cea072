"""Guest email template rendering.

Templates carry ``{{name}}`` placeholders and ``{{#if name}}…{{else}}…{{/if}}``
blocks, which may nest. Rendering is a pure function of (template, context,
footer): no database or network access happens here.

Body steps, in order:
  1. structural repair
  2. placeholder substitution (values are HTML-escaped)
  3. conditional resolution, then a bounded sweep of stray tokens
  4. a second substitution pass
  5. hotel footer injection

The subject resolves its conditionals first and is substituted once, raw.
"""
import html
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from numbers import Number

logger = logging.getLogger(__name__)

FOOTER_PLACEHOLDER = 'hotelInfoFooter'

PLACEHOLDER_RE = re.compile(r'\{\{\s*([A-Za-z_]\w*)\s*\}\}')
CONDITIONAL_TOKEN_RE = re.compile(
    r'\{\{\s*(?:#if\s+([A-Za-z_]\w*)|(else)|(/if))\s*\}\}', re.IGNORECASE,
)
# Anything shaped like a conditional tag, well-formed or not.
STRAY_TOKEN_RE = re.compile(r'\{\{\s*(?:#if\b[^}]*|else|/if)\s*\}\}', re.IGNORECASE)
FOOTER_RE = re.compile(r'\{\{\s*' + FOOTER_PLACEHOLDER + r'\s*\}\}')

MAX_CLEANUP_PASSES = 50

BASE_STYLE = """
        body { font-family: Arial, 'Helvetica Neue', sans-serif; line-height: 1.7; color: #333; margin: 0; padding: 0; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: #262A33; color: #fff; padding: 24px; text-align: center; border-radius: 8px 8px 0 0; }
        .content { background: #f9f9f9; padding: 24px; border-radius: 0 0 8px 8px; }
        h1 { font-size: 24px; margin: 0; }
        h2 { font-size: 20px; margin: 24px 0 12px; }
        p { margin: 10px 0; }
        .footer { color: #777; font-size: 13px; margin-top: 24px; border-top: 1px solid #ddd; padding-top: 12px; }
"""


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    body: str


# ---------------------------------------------------------------------------
# Truthiness / value formatting
# ---------------------------------------------------------------------------

def is_truthy(value):
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, Number):
        return value != 0
    if isinstance(value, (str, Mapping, list, tuple, set)):
        return len(value) > 0
    return bool(value)


def _format_value(value):
    """Scalar → display string. Mappings, sequences and None render as ''."""
    if value is None or isinstance(value, (Mapping, list, tuple, set)):
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _escape_body_value(text):
    # Braces are escaped too so substituted guest data can never form template tokens.
    return html.escape(text).replace('{', '&#123;').replace('}', '&#125;')


# ---------------------------------------------------------------------------
# Step 1: structural repair
# ---------------------------------------------------------------------------

_BODY_RE = re.compile(r'<body[^>]*>(.*?)</body>', re.IGNORECASE | re.DOTALL)
_STYLE_BLOCK_RE = re.compile(r'<style[^>]*>.*?</style>', re.IGNORECASE | re.DOTALL)
_HEAD_RE = re.compile(r'<head[^>]*>(.*?)</head>', re.IGNORECASE | re.DOTALL)
_CHARSET_RE = re.compile(r'<meta\s+charset=[^>]*>', re.IGNORECASE)


def _has_root(content):
    lowered = content.lower()
    return '<!doctype html>' in lowered or ('<html' in lowered and '</html>' in lowered)


def _has_region(content, name):
    return re.search(r'class=["\'][^"\']*\b' + name + r'\b', content) is not None


def needs_repair(content):
    return not (
        _has_root(content)
        and re.search(r'<style[\s>]', content, re.IGNORECASE)
        and _has_region(content, 'container')
        and _has_region(content, 'header')
        and _has_region(content, 'content')
    )


def repair_structure(content):
    """Wrap body content in a complete document with the standard regions.

    Placeholders and conditional tokens are carried over untouched. A body
    that already has a root, a style block and container/header/content
    regions is returned as-is.
    """
    if not needs_repair(content):
        return content

    match = _BODY_RE.search(content)
    inner = match.group(1) if match else content
    if not match and _has_root(content):
        # Document without a body element: drop the outer shell, keep the rest
        inner = re.sub(r'<!doctype[^>]*>|</?html[^>]*>', '', content, flags=re.IGNORECASE)
    inner = _HEAD_RE.sub('', inner)
    extra_styles = ''.join(_STYLE_BLOCK_RE.findall(content))
    inner = _STYLE_BLOCK_RE.sub('', inner).strip()

    # The author's head content (title, meta) survives; styles and charset are re-emitted
    head = _HEAD_RE.search(content)
    head_extra = ''
    if head:
        head_extra = _CHARSET_RE.sub('', _STYLE_BLOCK_RE.sub('', head.group(1))).strip()

    return (
        '<!DOCTYPE html>\n'
        '<html>\n'
        '<head>\n'
        '    <meta charset="UTF-8">\n'
        + (f'    {head_extra}\n' if head_extra else '')
        + f'    <style>{BASE_STYLE}    </style>{extra_styles}\n'
        '</head>\n'
        '<body>\n'
        '    <div class="container">\n'
        '        <div class="header"><h1>{{hotelName}}</h1></div>\n'
        '        <div class="content">\n'
        f'{inner}\n'
        '        </div>\n'
        '    </div>\n'
        '</body>\n'
        '</html>'
    )


# ---------------------------------------------------------------------------
# Steps 2 and 4: substitution
# ---------------------------------------------------------------------------

def substitute(text, context, escape=False):
    """Replace ``{{name}}`` for every name present in ``context``.

    Unknown names are left for later steps. One pass: values are never
    re-scanned for placeholders.
    """
    def _replace(match):
        name = match.group(1)
        if name not in context:
            return match.group(0)
        value = _format_value(context[name])
        return _escape_body_value(value) if escape else value

    return PLACEHOLDER_RE.sub(_replace, text)


# ---------------------------------------------------------------------------
# Step 3: conditional blocks
# ---------------------------------------------------------------------------

class _Frame:
    __slots__ = ('token', 'truthy', 'then_parts', 'else_parts', 'else_token')

    def __init__(self, token, truthy):
        self.token = token
        self.truthy = truthy
        self.then_parts = []
        self.else_parts = None
        self.else_token = None

    @property
    def active(self):
        return self.then_parts if self.else_parts is None else self.else_parts

    def resolved(self):
        if self.truthy:
            return ''.join(self.then_parts)
        return ''.join(self.else_parts or [])

    def unclosed(self):
        """Literal text for a block that never saw its ``{{/if}}``."""
        text = self.token + ''.join(self.then_parts)
        if self.else_parts is not None:
            text += self.else_token + ''.join(self.else_parts)
        return text


def resolve_conditionals(text, context):
    """Resolve ``{{#if}}`` blocks with a stack, innermost first.

    Unknown names are falsy. Stray ``{{else}}``/``{{/if}}`` tokens and
    unclosed ``{{#if}}`` openers are kept literally for the cleanup sweep.
    """
    root = []
    stack = []

    def buffer():
        return stack[-1].active if stack else root

    pos = 0
    for match in CONDITIONAL_TOKEN_RE.finditer(text):
        if match.start() > pos:
            buffer().append(text[pos:match.start()])
        pos = match.end()
        token = match.group(0)
        name, is_else, is_close = match.groups()

        if name:
            stack.append(_Frame(token, is_truthy(context.get(name))))
        elif is_else:
            if stack and stack[-1].else_parts is None:
                stack[-1].else_parts = []
                stack[-1].else_token = token
            else:
                buffer().append(token)
        elif is_close:
            if stack:
                frame = stack.pop()
                buffer().append(frame.resolved())
            else:
                root.append(token)

    if pos < len(text):
        buffer().append(text[pos:])

    while stack:
        frame = stack.pop()
        buffer().append(frame.unclosed())

    return ''.join(root)


def sweep_stray_tokens(text):
    """Strip leftover conditional tokens.

    Removing one token can splice its neighbours into a new one, so repeat
    until clean, up to MAX_CLEANUP_PASSES.
    """
    for _ in range(MAX_CLEANUP_PASSES):
        cleaned = STRAY_TOKEN_RE.sub('', text)
        if cleaned == text:
            break
        text = cleaned
    else:
        logger.warning('Conditional token sweep hit the %d pass cap', MAX_CLEANUP_PASSES)
    return text


# ---------------------------------------------------------------------------
# Step 5: footer
# ---------------------------------------------------------------------------

def inject_footer(body, footer):
    """Put ``footer`` at ``{{hotelInfoFooter}}`` if declared, else before ``</body>``.

    Never both. An empty footer only clears the placeholder.
    """
    if FOOTER_RE.search(body):
        return FOOTER_RE.sub(lambda _m: footer, body)
    if not footer:
        return body
    for closing in ('</body>', '</html>'):
        index = body.lower().rfind(closing)
        if index != -1:
            return body[:index] + footer + '\n' + body[index:]
    return body + footer


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def render(template, context, footer='', conditions=None):
    """Render ``template`` (anything with ``subject`` and ``content``) against ``context``.

    ``conditions`` supplies the values ``{{#if}}`` tests, for when they differ
    from the display strings in ``context`` (amounts formatted as ``'0'``).
    Defaults to ``context``.
    """
    if conditions is None:
        conditions = context
    body = repair_structure(template.content or '')
    subject = template.subject or ''

    body = substitute(body, context, escape=True)
    body = sweep_stray_tokens(resolve_conditionals(body, conditions))
    body = substitute(body, context, escape=True)

    # Subject: blocks first, then one raw substitution pass
    subject = sweep_stray_tokens(resolve_conditionals(subject, conditions))
    subject = substitute(subject, context)

    body = inject_footer(body, footer)
    return RenderedEmail(subject=subject.strip(), body=body)
