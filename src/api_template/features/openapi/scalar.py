"""
api_template.features.openapi.scalar

HTML page hosting the Scalar API reference UI.
"""

from __future__ import annotations

import html
import json
from typing import Any

from fastapi.responses import HTMLResponse

from api_template.settings import Settings

SCALAR_JS_URL = "https://cdn.jsdelivr.net/npm/@scalar/api-reference"


def scalar_configuration(settings: Settings) -> dict[str, Any]:
    azure_ad = settings.azure_ad
    selected_scopes = [s for s in azure_ad.qualified_scopes if "user_impersonation" in s][:1]
    return {
        "theme": settings.scalar.theme,
        "defaultHttpClient": {"targetKey": "shell", "clientKey": "curl"},
        "authentication": {
            "preferredSecurityScheme": settings.scalar.preferred_security_scheme,
            "securitySchemes": {
                "oauth2": {
                    "flows": {
                        "authorizationCode": {
                            "x-scalar-client-id": azure_ad.client_id,
                            "selectedScopes": selected_scopes,
                        }
                    }
                }
            },
        },
    }


def get_scalar_html(*, openapi_url: str, title: str, configuration: dict[str, Any]) -> HTMLResponse:
    # `</` would close the inline script early.
    config_json = json.dumps(configuration).replace("</", "<\\/")
    page = f"""<!doctype html>
<html>
  <head>
    <title>{html.escape(title)}</title>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
  </head>
  <body>
    <script id="api-reference" data-url="{html.escape(openapi_url, quote=True)}"></script>
    <script>
      document.getElementById("api-reference").dataset.configuration = JSON.stringify({config_json});
    </script>
    <script src="{SCALAR_JS_URL}"></script>
  </body>
</html>
"""
    return HTMLResponse(page)
