"""
authdemo

Flask demo wiring third-party authentication clients (OpenID Connect,
SAML2, Facebook, Twitter, Strava, CAS, form, HTTP Basic, JWT parameter) to
URL prefixes and rendering the resulting user profile.
"""

from .app import create_app
