"""Tax calculator preview resources."""

import dataclasses

import falcon.asgi

from gstlifecycle.domain.services import tax_calculator


def _items(body: object) -> list[dict]:
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    items = body.get("items")
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise ValueError("items must be a list of objects")
    return items


class TaxItemsResource:
    """POST /v1/tax/items - per-item GST amounts and unit price."""

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        try:
            items = _items(await req.get_media())
        except ValueError as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": str(e)}
            return

        resp.media = {
            "items": [
                {
                    **dataclasses.asdict(
                        tax_calculator.compute_item_tax(
                            i.get("value"), i.get("cgst"), i.get("sgst"), i.get("igst")
                        )
                    ),
                    "unit_price": tax_calculator.compute_unit_price(
                        i.get("value"), i.get("quantity")
                    ),
                }
                for i in items
            ]
        }
        resp.status = falcon.HTTP_200


class TaxTotalsResource:
    """POST /v1/tax/totals - invoice totals with optional round-off and cess."""

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        try:
            body = await req.get_media()
            items = _items(body)
        except ValueError as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": str(e)}
            return

        totals = tax_calculator.compute_totals(items)
        resp.media = {
            **dataclasses.asdict(totals),
            "final_invoice_value": tax_calculator.compute_final_invoice_value(
                totals.total_invoice_value, body.get("round_off"), body.get("cess")
            ),
        }
        resp.status = falcon.HTTP_200
