# app.py
#
# Application factory and the route table of the demo:
#
#   /oidc/**      OpenID Connect (prompt=consent)
#   /saml2/**     SAML2 SP, 1 hour maximum authentication lifetime
#   /twitter/**   Facebook and Twitter on the same URL, pick one with
#                 ?client_name=FacebookClient|TwitterClient
#   /form/**      login form (password = username)
#   /basic/**     HTTP Basic challenge at the callback (password = username)
#   /cas/**       CAS
#   /strava/**    Strava
#   /rest-jwt/**  JWT passed as the "token" query parameter (GET only)
#   /direct/**    HTTP Basic on the request itself (password = username)
#
# /form/admin/** additionally requires a form/basic user whose name starts
# with "jle".

import logging
from flask import Flask
from flask_session import Session

from .clients import (
  CasClient, DirectBasicAuthClient, FacebookClient, OidcClient,
  ParameterClient, SAML2Client, SAML2ClientConfiguration,
  SimpleTestUsernamePasswordAuthenticator, StravaClient, TwitterClient,
)
from .config import configure_logging, load_config
from .profiles import HttpProfile
from .security import Auth
from .tokens import JwtAuthenticator
from . import views

logger = logging.getLogger(__name__)

def http_options(conf):
  return {'timeout': conf['HTTP_TIMEOUT'], 'verify': conf['CA_BUNDLE'] or True}

def oidc_client(conf):
  client = OidcClient(
    conf['OIDC_CLIENT_ID'],
    conf['OIDC_SECRET'],
    conf['OIDC_DISCOVERY_URI'],
    **http_options(conf)
  )
  client.add_custom_param('prompt', 'consent')
  return client

def saml2_client(conf):
  cfg = SAML2ClientConfiguration(
    conf['SAML_KEY_FILE'],
    conf['SAML_KEY_PASSWORD'],
    conf['SAML_CERT_FILE'],
    conf['SAML_IDP_METADATA_PATH']
  )
  cfg.maximum_authentication_lifetime = conf['SAML_MAX_AUTH_LIFETIME']
  cfg.service_provider_entity_id = conf['SAML_SP_ENTITY_ID']
  cfg.service_provider_metadata_path = conf['SAML_SP_METADATA_PATH']
  return SAML2Client(cfg)

def cas_client(conf):
  return CasClient(conf['CAS_LOGIN_URL'], **http_options(conf))

def strava_client(conf):
  return StravaClient(
    conf['STRAVA_KEY'],
    conf['STRAVA_SECRET'],
    scope=conf['STRAVA_SCOPE'],
    approval_prompt=conf['STRAVA_APPROVAL_PROMPT'],
    **http_options(conf)
  )

def rest_jwt_client(conf):
  return ParameterClient(
    'token',
    JwtAuthenticator(conf['JWT_SALT']),
    support_get=True,
    support_post=False
  )

def is_jle(profile):
  return isinstance(profile, HttpProfile) and (profile.username or '').startswith('jle')

def build_auth():
  return (Auth()
    .client('/oidc/**', oidc_client)
    .client('/saml2/**', saml2_client)
    .client('/twitter/**', lambda conf: FacebookClient(conf['FB_KEY'], conf['FB_SECRET'], **http_options(conf)))
    .client('/twitter/**', lambda conf: TwitterClient(conf['TWITTER_KEY'], conf['TWITTER_SECRET'], **http_options(conf)))
    .form('/form/**')
    .basic('/basic/**')
    .client('/cas/**', cas_client)
    .client('/strava/**', strava_client)
    .client('/rest-jwt/**', rest_jwt_client)
    .client('/direct/**', DirectBasicAuthClient(SimpleTestUsernamePasswordAuthenticator()))
    .authorizer('jle', '/form/admin/**', is_jle))

def create_app(overrides=None):
  config = load_config(overrides)
  configure_logging(config['LOG_LEVEL'])

  app = Flask(__name__)
  app.config.update(config)
  # Server side sessions; without SESSION_TYPE Flask's signed cookie is used
  if app.config.get('SESSION_TYPE'):
    Session(app)

  build_auth().init_app(app)
  app.register_blueprint(views.bp)
  logger.info('authdemo ready at %s', app.config['BASE_URL'])
  return app
