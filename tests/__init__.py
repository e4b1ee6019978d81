"""
Citation Auditor test suite.

- test_extract_citations.py / test_case_names.py: pattern matching and name attribution
- test_public_resolve.py / test_fetch_url.py: BAILII and FCL lookups against a fake HTTP layer
- test_verify_citations.py: per-citation state machine and batch verification
- test_cli.py / test_api.py: command-line and HTTP surfaces
- test_authorities.py / test_config.py: saved authorities, utilities and settings
"""
