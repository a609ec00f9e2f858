# Infrastructure Layer
# ====================
# Contains all external tool integrations:
# - process/: running build and diff tools as abort-on-error steps
# - browserstack/: BrowserStack Local tunnel daemon and hub status
# - webdriver/: Selenium browser matrix and in-browser test runner
# - tls/: self-signed certificates for the static server
# - report/: reg-cli screenshot diff and report bundling
# - config/: Environment and settings management
