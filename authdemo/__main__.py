# __main__.py
#
# Runs the demo with Flask's built-in server:
#
#   python -m authdemo
#
# Listens on HOST:PORT (0.0.0.0:8080 by default). When SSL_CERT and SSL_KEY
# are set the server uses TLS; SSL_CHAIN (intermediate CA certificates) is
# appended to the server certificate to form the chain file.

import os
import ssl

from .app import create_app

def build_ssl_context(cert, key, chain=None, password=None):
  certfile = cert
  if chain:
    # Combine server cert and intermediate CA into a chain file
    certfile = os.path.splitext(cert)[0] + '.chain.crt'
    if not os.path.exists(certfile):
      with open(certfile, 'w') as out:
        with open(cert, 'r') as sc:
          out.write(sc.read())
        with open(chain, 'r') as ca:
          out.write('\n')
          out.write(ca.read())
  context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
  context.load_cert_chain(certfile, key, password=password)
  return context

def main():
  app = create_app()
  context = None
  if app.config['SSL_CERT'] and app.config['SSL_KEY']:
    context = build_ssl_context(
      app.config['SSL_CERT'],
      app.config['SSL_KEY'],
      app.config['SSL_CHAIN'],
      app.config['SSL_KEY_PASSWORD']
    )
  app.run(host=app.config['HOST'], port=app.config['PORT'], ssl_context=context)

if __name__ == '__main__':
  main()
