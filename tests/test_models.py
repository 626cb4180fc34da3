from tmdbref.models import MovieInfo, ReferenceKind, ResolvedPreview, UNKNOWN_TITLE


def test_movie_info_keeps_unknown_fields():
    info = MovieInfo.model_validate(
        {"id": 293, "title": "Foo", "runtime": 123, "genres": [{"id": 18, "name": "Drama"}]}
    )

    assert info.failed is False
    assert info.model_extra == {"runtime": 123, "genres": [{"id": 18, "name": "Drama"}]}


def test_movie_info_error_marker():
    info = MovieInfo.model_validate({"error": "not found"})

    assert info.failed is True
    assert info.display_title() == UNKNOWN_TITLE


def test_display_title_does_not_repeat_identical_titles():
    assert MovieInfo(title="Foo", original_title="Foo").display_title() == "Foo"
    assert MovieInfo(title="Foo", original_title="Bar").display_title() == "Foo (Bar)"
    assert MovieInfo(title="", original_title="Bar").display_title() == "Bar"


def test_reference_kind_path_segments():
    assert [kind.path_segment for kind in ReferenceKind] == ["movie", "person", "tv"]


def test_resolved_preview_serialises_optional_fields():
    url = "https://www.themoviedb.org/movie/293"
    preview = ResolvedPreview(source_text=url, title="Foo", catalog_url=url)

    assert preview.model_dump(mode="json") == {
        "source_text": url,
        "title": "Foo",
        "description": "",
        "image_url": "",
        "catalog_url": url,
        "rich_object": None,
    }


def test_movie_info_accepts_non_string_error_marker():
    assert MovieInfo.model_validate({"error": 404}).failed is True
    assert MovieInfo.model_validate({"error": {"code": 34}}).failed is True
