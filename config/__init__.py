# config package - authoritative source for provider and generation settings.
#
# Sub-modules:
#   api_config.py    - provider endpoints, credential env vars, model fallback lists
#   model_params.py  - generation parameters, retry classification, timeouts
#
# Runtime values (credentials, port, data file) are read from the environment
# by src/api_client/config.py:load_settings().
