# config.py
#
# Settings for the authentication demo. Every key has a default in DEFAULTS
# and can be overridden by an environment variable of the same name, e.g.
#
#   OIDC_CLIENT_ID=... OIDC_SECRET=... python -m authdemo
#
# Values are coerced to the type of their default (int, bool). Keys whose
# default is None are read as plain strings.

import os
import logging.config

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
CERTS_DIR = os.path.abspath(os.path.join(BASE_DIR, '..', 'certs'))

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s.%(funcName)s] %(message)s'

DEFAULTS = {
  'SECRET_KEY': 'change_this_secret',
  'BASE_URL': 'http://localhost:8080',
  'SESSION_TYPE': 'filesystem',
  'PERMANENT_SESSION_LIFETIME': 7200,  # 2 hours
  'LOG_LEVEL': 'INFO',
  'HOST': '0.0.0.0',
  'PORT': 8080,

  # Outgoing HTTP (OAuth/OIDC providers, CAS validation)
  'CA_BUNDLE': None,
  'HTTP_TIMEOUT': 10,

  # OpenID Connect
  'OIDC_CLIENT_ID': 'changeme',
  'OIDC_SECRET': 'changeme',
  'OIDC_DISCOVERY_URI': 'https://accounts.google.com/.well-known/openid-configuration',

  # SAML2
  'SAML_KEY_FILE': os.path.join(CERTS_DIR, 'sp.key'),
  'SAML_KEY_PASSWORD': None,
  'SAML_CERT_FILE': os.path.join(CERTS_DIR, 'sp.crt'),
  'SAML_IDP_METADATA_PATH': os.path.join(CERTS_DIR, 'idp-metadata.xml'),
  'SAML_SP_ENTITY_ID': 'urn:mace:saml:authdemo',
  'SAML_SP_METADATA_PATH': os.path.abspath(os.path.join(BASE_DIR, '..', 'target', 'sp-metadata.xml')),
  'SAML_MAX_AUTH_LIFETIME': 3600,

  # OAuth providers
  'FB_KEY': 'changeme',
  'FB_SECRET': 'changeme',
  'TWITTER_KEY': 'changeme',
  'TWITTER_SECRET': 'changeme',
  'STRAVA_KEY': 'changeme',
  'STRAVA_SECRET': 'changeme',
  'STRAVA_SCOPE': 'read',
  'STRAVA_APPROVAL_PROMPT': 'auto',

  # CAS
  'CAS_LOGIN_URL': 'https://casserverpac4j.herokuapp.com/login',

  # HS256 secret for /generate-token and /rest-jwt
  'JWT_SALT': '12345678901234567890123456789012',

  # TLS for the built-in server
  'SSL_CERT': None,
  'SSL_KEY': None,
  'SSL_CHAIN': None,
  'SSL_KEY_PASSWORD': None,
}

def _coerce(value, default):
  if isinstance(default, bool):
    return value.lower() in ('1', 'true', 'yes', 'on')
  if isinstance(default, int):
    return int(value)
  return value or None

def load_config(overrides=None):
  """
  Returns the settings dict: DEFAULTS, then environment variables, then
  the explicit overrides.
  """
  config = dict(DEFAULTS)
  for key, default in DEFAULTS.items():
    if key in os.environ:
      config[key] = _coerce(os.environ[key], default)
  if overrides:
    config.update(overrides)
  return config

def configure_logging(level='INFO'):
  logging.config.dictConfig({
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
      'simple': {
        'format': LOG_FORMAT,
      },
    },
    'handlers': {
      'stdout': {
        'class': 'logging.StreamHandler',
        'stream': 'ext://sys.stdout',
        'formatter': 'simple',
      },
    },
    'loggers': {
      'saml2': {
        'level': 'WARNING',
      },
      'authdemo': {
        'level': level,
      },
    },
    'root': {
      'level': level,
      'handlers': [
        'stdout',
      ],
    },
  })
