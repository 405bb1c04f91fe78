"""
Operation catalogue for featurebase-mcp.

Every MCP tool is one Operation entry in OPERATIONS: its inputs, the HTTP
call it makes, and the ShapingRule applied to the response. Adding a tool
means adding an entry here; the dispatcher and server need no changes.

Response shaping (shape_response):
    PASSTHROUGH       body as-is; with ``select``, each ``results`` element is
                      projected and pagination keys pass through untouched
    MINIMAL_CREATE    only {"success", <entity>: {"id"}} survives
    IDENTITY          body as-is
    FIXED_PROJECTION  ``results`` reduced by the operation's fixed_select,
                      plus pagination keys; nothing else survives
"""

from collections.abc import Iterator
from typing import Any

from featurebase_mcp.projection import Node, project
from featurebase_mcp.schema import FieldType, InputField, Operation, Placement, ShapingRule

PAGINATION_KEYS = ("page", "limit", "totalPages", "totalResults")

COMMENT_FIELDS = (
    "upvoted, downvoted, inReview, isSpam, pinned, emailSent, sendNotification, "
    "organization, submission, author, authorId, authorPicture, isPrivate, isDeleted, "
    "confidenceScore, content, upvotes, downvotes, score, parentComment, path, "
    "createdAt, updatedAt, id"
)

UPVOTER_SELECT = "userId,organizationId,companies(id,name),email,name"


def _select(examples: str) -> InputField:
    return InputField(
        name="select",
        description=f"Fields to return. Examples: {examples}. Leave empty for all fields.",
    )


def _string(name: str, description: str, required: bool = False, enum: tuple[str, ...] | None = None) -> InputField:
    return InputField(name=name, description=description, required=required, enum=enum)


def _number(name: str, description: str) -> InputField:
    return InputField(name=name, type=FieldType.NUMBER, description=description)


def _boolean(name: str, description: str) -> InputField:
    return InputField(name=name, type=FieldType.BOOLEAN, description=description)


def _strings(name: str, description: str) -> InputField:
    return InputField(name=name, type=FieldType.ARRAY, description=description)


def _object(name: str, description: str, properties: dict[str, Any] | None = None) -> InputField:
    return InputField(name=name, type=FieldType.OBJECT, description=description, properties=properties)


# =============================================================================
# Posts
# =============================================================================

_POST_OPERATIONS = (
    Operation(
        name="list_posts",
        description=(
            "List posts with optional filtering. Available fields: id, title, content, author, "
            "authorId, authorPicture, commentsAllowed, organization, upvotes, upvoted, "
            "postCategory(category,private,prefill,roles,hiddenFromRoles,id), "
            "postTags(name,color,private,id), postStatus(name,color,type,isDefault,id), date, "
            "lastModified, comments, isSubscribed, inReview, lastDraggedTimestamps"
        ),
        path="/posts",
        inputs=(
            _string("id", "Find submission by its id"),
            _string("q", "Search for posts by title or content"),
            _strings("category", "Filter posts by category (board) names"),
            _strings("status", "Filter posts by status ids"),
            _string("sortBy", 'Sort posts (e.g., "date:desc" or "upvotes:desc")'),
            _string("startDate", "Get posts created after this date"),
            _string("endDate", "Get posts created before this date"),
            _number("limit", "Number of results per page"),
            _number("page", "Page number"),
            _select('"id,title,upvotes" | "title,author(name)" | "postCategory(category),postStatus(name)"'),
        ),
        shaping=ShapingRule.PASSTHROUGH,
    ),
    Operation(
        name="create_post",
        description="Create a new post",
        method="POST",
        path="/posts",
        placement=Placement.BODY,
        inputs=(
            _string("title", "Post title (min 2 characters)", required=True),
            _string("category", "The board (category) for the post", required=True),
            _string("content", "Post content (can be empty)"),
            _string("email", "Email of the user submitting"),
            _string("authorName", "Name for new user if email not found"),
            _strings("tags", "Array of tag names"),
            _boolean("commentsAllowed", "Allow comments on post"),
            _string("status", "Post status"),
            _string("date", "Post creation date"),
            _object("customInputValues", "Custom field values"),
        ),
        shaping=ShapingRule.MINIMAL_CREATE,
        entity="submission",
    ),
    Operation(
        name="update_post",
        description="Update an existing post",
        method="PATCH",
        path="/posts",
        placement=Placement.BODY,
        inputs=(
            _string("id", "Post ID to update", required=True),
            _string("title", "New title"),
            _string("content", "New content"),
            _string("status", "New status"),
            _boolean("commentsAllowed", "Allow comments"),
            _string("category", "New category"),
            _boolean("sendStatusUpdateEmail", "Send status update email to upvoters"),
            _strings("tags", "New tags"),
            _boolean("inReview", "Put post in review"),
            _string("date", "Post creation date"),
            _object("customInputValues", "Custom field values"),
        ),
    ),
    Operation(
        name="delete_post",
        description="Delete a post permanently",
        method="DELETE",
        path="/posts",
        placement=Placement.BODY,
        inputs=(_string("id", "Post ID to delete", required=True),),
    ),
    Operation(
        name="get_post_upvoters",
        description="Get list of users who upvoted a post",
        path="/posts/upvoters",
        inputs=(
            _string("submissionId", "Post ID", required=True),
            _number("page", "Page number (default: 1)"),
            _number("limit", "Results per page (default: 10, max: 100)"),
        ),
        defaults={"page": 1, "limit": 10},
        shaping=ShapingRule.FIXED_PROJECTION,
        fixed_select=UPVOTER_SELECT,
    ),
    Operation(
        name="add_upvoter",
        description="Add an upvoter to a post",
        method="POST",
        path="/posts/upvoters",
        placement=Placement.BODY,
        inputs=(
            _string("id", "Post ID", required=True),
            _string("email", "Upvoter email", required=True),
            _string("name", "Upvoter name", required=True),
        ),
    ),
    Operation(
        name="resolve_post_slug",
        description="Convert a post slug to post ID and get post details",
        path="/api/v1/submission",
        placement=Placement.PUBLIC,
        inputs=(
            _string(
                "slug",
                "Post slug from URL (e.g., 'spacectl-stack-local-preview-target')",
                required=True,
            ),
        ),
    ),
    Operation(
        name="get_similar_submissions",
        description="Find posts similar to the given query text",
        path="/api/v1/submission/getSimilarSubmissions",
        placement=Placement.PUBLIC,
        inputs=(
            _string("query", "Search query text to find similar submissions", required=True),
            _string("locale", "Locale for search (default: 'en')"),
        ),
        defaults={"locale": "en"},
    ),
)


# =============================================================================
# Comments
# =============================================================================

_COMMENT_OPERATIONS = (
    Operation(
        name="get_comments",
        description=f"Get comments for a post or changelog. Available fields: {COMMENT_FIELDS}, replies({COMMENT_FIELDS})",
        path="/comment",
        inputs=(
            _string("submissionId", "Post ID or slug (required if no changelogId)"),
            _string("changelogId", "Changelog ID or slug (required if no submissionId)"),
            _string("privacy", "Filter by privacy setting", enum=("public", "private", "all")),
            _boolean("inReview", "Filter for comments in review"),
            _string("commentThreadId", "Get all comments in a thread"),
            _number("limit", "Results per page (default: 10)"),
            _number("page", "Page number (default: 1)"),
            _string("sortBy", "Sort order (default: best)", enum=("best", "top", "new", "old")),
            _select('"id,content,author(name)" | "content,upvotes,createdAt" | "author(name,email),replies(content)"'),
        ),
        shaping=ShapingRule.PASSTHROUGH,
    ),
    Operation(
        name="create_comment",
        description="Create a new comment or reply",
        method="POST",
        path="/comment",
        placement=Placement.BODY,
        inputs=(
            _string("submissionId", "Post ID or slug (required if no changelogId)"),
            _string("changelogId", "Changelog ID or slug (required if no submissionId)"),
            _string("content", "Comment content", required=True),
            _string("parentCommentId", "Parent comment ID for replies"),
            _boolean("isPrivate", "Make comment private (admins only)"),
            _boolean("sendNotification", "Notify voters (default: true)"),
            _string("createdAt", "Set creation date"),
            _object(
                "author",
                "Post as specific user",
                properties={
                    "name": {"type": "string"},
                    "email": {"type": "string"},
                    "profilePicture": {"type": "string"},
                },
            ),
        ),
        shaping=ShapingRule.MINIMAL_CREATE,
        entity="comment",
    ),
    Operation(
        name="update_comment",
        description="Update an existing comment",
        method="PATCH",
        path="/comment",
        placement=Placement.BODY,
        inputs=(
            _string("id", "Comment ID", required=True),
            _string("content", "New content"),
            _boolean("isPrivate", "Make private (admins only)"),
            _boolean("pinned", "Pin comment to top"),
            _boolean("inReview", "Put comment in review"),
            _string("createdAt", "Update creation date"),
        ),
    ),
    Operation(
        name="delete_comment",
        description="Delete a comment (soft delete if has replies)",
        method="DELETE",
        path="/comment",
        placement=Placement.BODY,
        inputs=(_string("id", "Comment ID to delete", required=True),),
    ),
)


# =============================================================================
# Changelogs
# =============================================================================

_CHANGELOG_OPERATIONS = (
    Operation(
        name="list_changelogs",
        description="List changelogs with optional filtering",
        path="/changelog",
        inputs=(
            _string("id", "Find changelog by its ID"),
            _string("q", "Search for changelogs by title or content"),
            _strings("category", "Filter changelogs by category names"),
            _string("state", "Filter by state (draft or live)", enum=("draft", "live")),
            _number("limit", "Number of results per page (max: 100)"),
            _number("page", "Page number"),
            _select('"id,title" | "title,state,categories"'),
        ),
        shaping=ShapingRule.PASSTHROUGH,
    ),
    Operation(
        name="create_changelog",
        description="Create a new changelog entry",
        method="POST",
        path="/changelog",
        placement=Placement.BODY,
        inputs=(
            _string("title", "Changelog title", required=True),
            _string("htmlContent", "HTML content of the changelog (use this OR markdownContent)"),
            _string("markdownContent", "Markdown content of the changelog (use this OR htmlContent)"),
            _strings("categories", "Array of category identifiers"),
        ),
        shaping=ShapingRule.MINIMAL_CREATE,
        entity="changelog",
    ),
    Operation(
        name="update_changelog",
        description="Update an existing changelog",
        method="PATCH",
        path="/changelog",
        placement=Placement.BODY,
        inputs=(
            _string("id", "Changelog ID to update", required=True),
            _string("title", "New title"),
            _string("htmlContent", "New HTML content"),
            _string("markdownContent", "New markdown content"),
            _strings("categories", "New categories"),
            _string("state", "Change state to draft or live", enum=("draft", "live")),
        ),
    ),
    Operation(
        name="delete_changelog",
        description="Delete a changelog permanently",
        method="DELETE",
        path="/changelog",
        placement=Placement.BODY,
        inputs=(_string("id", "Changelog ID to delete", required=True),),
    ),
    Operation(
        name="get_changelog_subscribers",
        description="Get list of changelog subscribers",
        path="/changelog/subscribers",
        inputs=(
            _number("limit", "Results per page (default: 10, max: 100)"),
            _number("page", "Page number (default: 1)"),
        ),
        defaults={"limit": 10, "page": 1},
    ),
    Operation(
        name="add_changelog_subscriber",
        description="Add a subscriber to changelog updates",
        method="POST",
        path="/changelog/subscribers",
        placement=Placement.BODY,
        inputs=(
            _string("email", "Subscriber email", required=True),
            _string("name", "Subscriber name", required=True),
        ),
    ),
    Operation(
        name="remove_changelog_subscriber",
        description="Remove a subscriber from changelog updates",
        method="DELETE",
        path="/changelog/subscribers",
        placement=Placement.BODY,
        inputs=(_string("email", "Subscriber email to remove", required=True),),
    ),
)


# =============================================================================
# Catalogue
# =============================================================================


class OperationCatalogue:
    """
    Immutable lookup of operations by tool name.

    Built once at import time; the dispatcher and the MCP server share it.
    """

    def __init__(self, operations: tuple[Operation, ...]) -> None:
        names = [op.name for op in operations]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            msg = f"Duplicate operation names: {', '.join(duplicates)}"
            raise ValueError(msg)
        self._operations = {op.name: op for op in operations}

    def get(self, name: str) -> Operation | None:
        return self._operations.get(name)

    def names(self) -> list[str]:
        return list(self._operations)

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._operations.values())

    def __len__(self) -> int:
        return len(self._operations)

    def __repr__(self) -> str:
        return f"<OperationCatalogue: [{', '.join(self._operations)}]>"


OPERATIONS = OperationCatalogue(_POST_OPERATIONS + _COMMENT_OPERATIONS + _CHANGELOG_OPERATIONS)


# =============================================================================
# Response Shaping
# =============================================================================


def shape_response(
    operation: Operation,
    body: Any,
    select: str | tuple[Node, ...] | None = None,
) -> Any:
    """
    Apply an operation's shaping rule to a decoded response.

    Args:
        operation: The operation that produced ``body``
        body: Decoded JSON response
        select: Caller projection, as text or a parsed tree (PASSTHROUGH only)

    Returns:
        The value returned to the caller

    Raises:
        MalformedProjectionError: If ``select`` cannot be parsed
    """
    if operation.shaping == ShapingRule.PASSTHROUGH:
        if not select:
            return body
        return _project_results(body, select, keep_all_keys=True)

    if operation.shaping == ShapingRule.MINIMAL_CREATE:
        return _minimal_confirmation(body, operation.entity or "")

    if operation.shaping == ShapingRule.FIXED_PROJECTION:
        return _project_results(body, operation.fixed_select or "", keep_all_keys=False)

    return body


def _project_results(body: Any, select: str | tuple[Node, ...], keep_all_keys: bool) -> dict[str, Any]:
    source = body if isinstance(body, dict) else {}
    results = source.get("results") or []

    if keep_all_keys:
        shaped = dict(source)
        shaped["results"] = project(results, select)
        return shaped

    shaped = {"results": project(results, select)}
    shaped.update((key, source[key]) for key in PAGINATION_KEYS if key in source)
    return shaped


def _minimal_confirmation(body: Any, entity: str) -> dict[str, Any]:
    source = body if isinstance(body, dict) else {}
    created = source.get(entity)

    confirmation: dict[str, Any] = {}
    if "success" in source:
        confirmation["success"] = source["success"]
    confirmation[entity] = {"id": created["id"]} if isinstance(created, dict) and "id" in created else {}
    return confirmation
