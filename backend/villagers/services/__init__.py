"""
The Villagers Backend — Services Layer
========================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Stateless service objects; the request's AsyncSession is passed into
       every call and the transaction is owned by get_db_session.

Service Inventory:
    - PincodeService:        pincode → postal area + villages, with a
                             storage-first, directory-fallback lookup
    - PostalDirectoryClient: HTTP client for the India Post directory
    - ContentService:        create/list stories, photos, foods, specialties
    - VillageService:        the two aggregate views of one village
    - UploadService:         image validation and data-URL encoding

Services raise VillagersError subclasses; main.py turns them into responses.
"""
