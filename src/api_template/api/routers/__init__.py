"""
api_template.api.routers

Service-default routers mounted by the bootstrap (not by feature modules).
"""

# Package marker.
