# Services package.
#
# Each module exposes async functions that take an AsyncSession first:
#
#   feed_service: author-enriched, paginated post/comment views
#   cascade_service: owner-checked post/comment deletion with subtrees
#   post_service: create/update posts
#   comment_service: create/update comments within a post's tree
#   user_service: signup, login, self-or-admin account changes
#
# Services flush but do not commit, except cascade_service, which commits
# its multi-row delete as one transaction.  Everything else is committed by
# the ``get_db`` dependency.
