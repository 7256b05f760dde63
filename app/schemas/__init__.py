from .common import (
	CamelModel,
	Pagination,
	MessageOnlyResponse,
)
from .user import (
	UserCreate,
	UserUpdate,
	UserSummary,
	UserResponse,
	UserProfileResponse,
	TokenResponse,
)
from .post import (
	PostCreate,
	PostResponse,
	PostDetailResponse,
	PostListResponse,
	PostLikeResponse,
)
from .comment import (
	CommentCreate,
	CommentResponse,
	CommentWithReplies,
	CommentListResponse,
)
from .follow import (
	FollowToggleResponse,
	FollowRequestAction,
	FollowRequestResponse,
)
from .message import (
	MessageCreate,
	MessageResponse,
	ConversationResponse,
)
from .notification import (
	NotificationResponse,
	NotificationListResponse,
)

__all__ = [
	# Common
	"CamelModel",
	"Pagination",
	"MessageOnlyResponse",
	# User
	"UserCreate",
	"UserUpdate",
	"UserSummary",
	"UserResponse",
	"UserProfileResponse",
	"TokenResponse",
	# Post
	"PostCreate",
	"PostResponse",
	"PostDetailResponse",
	"PostListResponse",
	"PostLikeResponse",
	# Comment
	"CommentCreate",
	"CommentResponse",
	"CommentWithReplies",
	"CommentListResponse",
	# Follow
	"FollowToggleResponse",
	"FollowRequestAction",
	"FollowRequestResponse",
	# Message
	"MessageCreate",
	"MessageResponse",
	"ConversationResponse",
	# Notification
	"NotificationResponse",
	"NotificationListResponse",
]
