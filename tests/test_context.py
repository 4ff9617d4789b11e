"""Tests for RequestContext."""

from yametrika.context import RequestContext


class TestFromEnviron:
    def test_cgi_style(self):
        ctx = RequestContext.from_environ(
            {
                "HTTPS": "on",
                "HTTP_HOST": "example.ru",
                "REQUEST_URI": "/page?x=1",
                "HTTP_REFERER": "https://ya.ru/",
                "REMOTE_ADDR": "10.0.0.1",
                "HTTP_USER_AGENT": "Mozilla/5.0",
            }
        )

        assert ctx == RequestContext(
            secure=True,
            host="example.ru",
            request_uri="/page?x=1",
            referer="https://ya.ru/",
            user_ip="10.0.0.1",
            user_agent="Mozilla/5.0",
        )

    def test_wsgi_path_and_query(self):
        ctx = RequestContext.from_environ(
            {
                "wsgi.url_scheme": "http",
                "HTTP_HOST": "example.ru",
                "PATH_INFO": "/page",
                "QUERY_STRING": "a=1",
            }
        )

        assert not ctx.secure
        assert ctx.request_uri == "/page?a=1"
        assert ctx.referer == ""

    def test_https_off_is_plain(self):
        ctx = RequestContext.from_environ({"HTTPS": "off", "HTTP_HOST": "a.b"})
        assert not ctx.secure

    def test_wsgi_https_scheme(self):
        ctx = RequestContext.from_environ({"wsgi.url_scheme": "https"})
        assert ctx.secure

    def test_falls_back_to_server_name(self):
        ctx = RequestContext.from_environ({"SERVER_NAME": "backend.local"})
        assert ctx.host == "backend.local"

    def test_empty_environ(self):
        assert RequestContext.from_environ({}) == RequestContext()
