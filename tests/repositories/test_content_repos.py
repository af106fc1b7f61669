import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from mingle.errors import AlreadyExists, InvalidArgument, NotFound
from mingle.repositories.comments_repo import CommentsRepository
from mingle.repositories.likes_repo import LikesRepository
from mingle.repositories.posts_repo import PostsRepository


@pytest.mark.repo
def test_post_counts_and_listing(db, alice, bob):
    posts = PostsRepository(db)
    comments = CommentsRepository(db)
    likes = LikesRepository(db)

    older = posts.create_post(alice.id, "first", None)
    newer = posts.create_post(bob.id, None, "http://img/1.png")
    comments.create_comment(older.id, bob.id, "nice")
    likes.add_like(older.id, bob.id)
    likes.add_like(older.id, alice.id)

    fetched = posts.get_post(older.id)
    assert fetched.comments_count == 1
    assert fetched.likes_count == 2

    items, total = posts.list_posts(limit=10, offset=0)
    assert total == 2
    assert [p.id for p in items] == [newer.id, older.id]

    items, total = posts.list_posts(limit=10, offset=0, author_id=alice.id)
    assert total == 1
    assert items[0].id == older.id


@pytest.mark.repo
def test_post_needs_content_or_image_in_store(db, alice):
    with pytest.raises(IntegrityError):
        with db.session() as session:
            session.execute(
                text("""
                    INSERT INTO posts(post_id, author_id, content, image_url, created_at_utc, updated_at_utc)
                    VALUES ('p1', :author_id, NULL, NULL, 'x', 'x');
                """),
                {"author_id": alice.id},
            )


@pytest.mark.repo
def test_update_post_only_touches_given_fields(db, alice):
    posts = PostsRepository(db)
    post = posts.create_post(alice.id, "text", "http://img/1.png")

    assert posts.update_post(post.id, {"content": "edited"}) is True

    updated = posts.get_post(post.id)
    assert updated.content == "edited"
    assert updated.image_url == "http://img/1.png"
    assert updated.updated_at > post.updated_at
    assert posts.update_post("missing", {"content": "x"}) is False


@pytest.mark.repo
def test_update_post_that_would_empty_the_row_is_rejected(db, alice):
    posts = PostsRepository(db)
    post = posts.create_post(alice.id, "text", "http://img/1.png")
    assert posts.update_post(post.id, {"image_url": None}) is True

    # A writer still holding the old row clears the other field
    with pytest.raises(InvalidArgument, match="content or an image"):
        posts.update_post(post.id, {"content": None})

    stored = posts.get_post(post.id)
    assert stored.content == "text"
    assert stored.image_url is None


@pytest.mark.repo
def test_delete_post_removes_comments_and_likes(db, alice, bob):
    posts = PostsRepository(db)
    comments = CommentsRepository(db)
    likes = LikesRepository(db)
    post = posts.create_post(alice.id, "bye", None)
    comments.create_comment(post.id, bob.id, "c1")
    likes.add_like(post.id, bob.id)

    assert posts.delete_post(post.id) is True

    assert posts.get_post(post.id) is None
    assert comments.list_for_post(post.id, limit=10, offset=0) == ([], 0)
    assert likes.list_for_post(post.id, limit=10, offset=0) == ([], 0)
    assert posts.delete_post(post.id) is False


@pytest.mark.repo
def test_like_is_unique_per_user_and_post(db, alice, bob):
    posts = PostsRepository(db)
    likes = LikesRepository(db)
    post = posts.create_post(alice.id, "like me", None)

    likes.add_like(post.id, bob.id)
    with pytest.raises(AlreadyExists, match="already liked"):
        likes.add_like(post.id, bob.id)

    assert likes.list_for_post(post.id, limit=10, offset=0)[1] == 1
    assert likes.has_liked(post.id, bob.id) is True
    assert likes.liked_post_ids(bob.id, [post.id, "other"]) == {post.id}

    assert likes.remove_like(post.id, bob.id) is True
    assert likes.remove_like(post.id, bob.id) is False


@pytest.mark.repo
def test_like_and_comment_on_missing_post(db, alice):
    with pytest.raises(NotFound):
        LikesRepository(db).add_like("missing", alice.id)
    with pytest.raises(NotFound):
        CommentsRepository(db).create_comment("missing", alice.id, "hello")


@pytest.mark.repo
def test_comments_newest_first(db, alice, bob):
    post = PostsRepository(db).create_post(alice.id, "post", None)
    comments = CommentsRepository(db)
    first = comments.create_comment(post.id, bob.id, "one")
    second = comments.create_comment(post.id, alice.id, "two")

    items, total = comments.list_for_post(post.id, limit=10, offset=0)

    assert total == 2
    assert [c.id for c in items] == [second.id, first.id]
    assert comments.update_content(first.id, "uno") is True
    assert comments.get_comment(first.id).content == "uno"


@pytest.mark.repo
def test_comments_grouped_by_post(db, alice, bob):
    posts = PostsRepository(db)
    comments = CommentsRepository(db)
    talked_about = posts.create_post(alice.id, "talk", None)
    quiet = posts.create_post(alice.id, "quiet", None)
    first = comments.create_comment(talked_about.id, bob.id, "one")
    second = comments.create_comment(talked_about.id, alice.id, "two")

    grouped = comments.list_for_posts([talked_about.id, quiet.id])

    assert [c.id for c in grouped[talked_about.id]] == [second.id, first.id]
    assert grouped[quiet.id] == []
    assert comments.list_for_posts([]) == {}
