"""
auth — User authentication module.

Provides:
  • Credential validation (pydantic schemas)
  • Password hashing (bcrypt)
  • Signed bearer token issue & verification
  • Register / login / user lookup & update API routes
  • ``get_current_user_id`` FastAPI dependency
"""
