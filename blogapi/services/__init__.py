# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single table or aggregate:
#
#   auth_service      login, token verification, current user
#   user_service      CRUD + pagination for User
#   category_service  CRUD for Category (+ unlinking from posts)
#   tag_service       CRUD for Tag (+ unlinking from posts)
#   post_service      CRUD, ownership checks and filtered listing for BlogPost
#   adsense_service   singleton AdSense configuration
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as ``blogapi.errors``
# exceptions (or the database's IntegrityError) and never swallowed.
