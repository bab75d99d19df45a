# Services package.
#
# Each module exposes a focused set of async functions that orchestrate
# validated input into repository calls for a single aggregate:
#
#   article_service   : list/get + store/update/destroy for Article,
#                       including tag association sync
#   category_service  : list/get + store/update/destroy for Category
#
# All service functions accept an AsyncSession as their first argument;
# the router layer owns the transaction through the ``get_db``
# dependency, and each write is scoped with ``database.atomic``.
