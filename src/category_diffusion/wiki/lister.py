"""Paginated category membership listing."""

from category_diffusion.wiki.client import MemberKind, WikiClient


class PagedLister:
    """Follow ``cmcontinue`` tokens until a listing is exhausted or capped."""

    def __init__(self, client: WikiClient, page_size: int = 500):
        self.client = client
        self.page_size = page_size

    async def list_titles(
        self,
        parent_title: str,
        kind: MemberKind,
        page_cap: int | None = None,
    ) -> list[str]:
        """Return member titles of ``parent_title`` in server order.

        With ``page_cap`` set, the result is truncated to exactly that many
        titles and no further page is requested once it is reached. A failed
        page request raises; nothing collected so far is returned.
        """
        titles: list[str] = []
        token: str | None = None

        while True:
            page = await self.client.list_members(
                parent_title, kind, self.page_size, token
            )
            titles.extend(page.members)

            if page_cap is not None and len(titles) >= page_cap:
                return titles[:page_cap]

            if not page.continue_token:
                return titles
            token = page.continue_token
