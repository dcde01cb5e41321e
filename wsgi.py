# ==============================================================================
# WSGI ENTRY POINT
# ==============================================================================
# Layout:
#   repo_root/
#     wsgi.py           <- this file
#     pyproject.toml
#     basil_pos/
#       main.py
#       services/
#       repositories/
#
# Run with:
#   gunicorn wsgi:app
# ==============================================================================

from basil_pos.main import create_app

app = create_app()
