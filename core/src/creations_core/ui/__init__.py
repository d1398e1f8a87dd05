"""Server-rendered admin pages for gallery creations.

- served by the Core FastAPI service
- plain HTML forms + redirects, no client-side framework
- login stores a signed session cookie that the route guard checks
"""
