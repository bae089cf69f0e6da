"""
JavaScript snippets evaluated in the page via Runtime.evaluate.

Each builder returns an expression whose value (with returnByValue) is
{"ok": true} on success or {"ok": false, "reason": "..."} on failure.
"""

import json

# Lets the page settle after Page.navigate before the command returns
SETTLE_EXPRESSION = "new Promise(r => setTimeout(r, 250))"


def js_string_literal(value) -> str:
    """Quote value as a JavaScript string literal."""
    return json.dumps(str(value))


def click_expression(selector: str) -> str:
    return f"""(() => {{
  const el = document.querySelector({js_string_literal(selector)});
  if (!el) return {{ ok: false, reason: 'not-found' }};
  el.click();
  return {{ ok: true }};
}})()"""


def type_expression(selector: str, text: str) -> str:
    """Focus the element, set its value and fire input/change events."""
    return f"""(() => {{
  const el = document.querySelector({js_string_literal(selector)});
  if (!el) return {{ ok: false, reason: 'not-found' }};
  el.focus();
  if ('value' in el) {{
    el.value = {js_string_literal(text)};
    el.dispatchEvent(new Event('input', {{ bubbles: true }}));
    el.dispatchEvent(new Event('change', {{ bubbles: true }}));
  }}
  return {{ ok: true }};
}})()"""
