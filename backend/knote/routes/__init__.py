# Routes package init
"""
KNote Backend — API Routes Package
===================================

Route Inventory:
    - notes.py:   GET  /              (feed and empty draft)
                  POST /note          (publish a note or attach an image)
    - images.py:  GET  /img/{key}     (serve an uploaded image)
    - health.py:  GET  /health        (service health check)

Routes stay thin: extract form fields, call a service, shape the response.
"""
