"""
Security headers middleware.

Applies X-Content-Type-Options, X-Frame-Options, Referrer-Policy and a
locked-down Content-Security-Policy to every response. The service only
speaks JSON, so nothing needs to be framed or executed.

Usage:
    from timekeeper.middleware.security_headers import init_security_headers
    init_security_headers(app)
"""


def init_security_headers(app):
    """Register after_request handler that injects security headers."""

    @app.after_request
    def _add_security_headers(response):
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")

        # Prevent MIME-type sniffing
        response.headers.setdefault("X-Content-Type-Options", "nosniff")

        # Clickjacking protection
        response.headers.setdefault("X-Frame-Options", "DENY")

        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")

        if not app.debug:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )

        response.headers.pop("Server", None)

        return response
