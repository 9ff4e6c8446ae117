"""
The Villagers Backend — API Routes Package
============================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one resource.

Route Inventory:
    - pincodes.py:        GET    /api/pincodes/{code}
                          GET    /api/pincodes/debug/all-villages
                          DELETE /api/pincodes/debug/clear
    - stories.py:         POST   /api/stories
                          GET    /api/stories
                          GET    /api/stories/village/{villageId}
    - photos.py:          POST   /api/photos      (multipart, field "photo")
                          GET    /api/photos
    - foods.py:           POST   /api/foods       (multipart, field "image")
                          GET    /api/foods
    - specialties.py:     POST   /api/specialties
                          GET    /api/specialties
    - village_details.py: GET    /api/village-details/{villageId}
    - villages.py:        GET    /api/villages/{id}
    - health.py:          GET    /health, GET /

Design Principle:
    Routes are THIN. They pull data out of the request, call one service
    method and return its result. Errors propagate to the global handlers
    in main.py.
"""
