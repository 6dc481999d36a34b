"""Terminal front end for the Dress Studio wizard.

Each invocation loads the saved wizard, performs one action against the
studio server and saves the wizard again:

    dress-studio design sketch_front.png --back sketch_back.png --color "#8B0000"
    dress-studio select front_2 back_1
    dress-studio try-on me.jpg --model openai
    dress-studio tailor fullName="Ada Lovelace" contact=ada@example.com bust=88
    dress-studio order
"""

import argparse
import asyncio
import logging
import re
import sys

import httpx
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import StudioConfig, load_config
from ..errors import StudioError
from ..models import ApprovalRequest, TryOnResponse
from ..pipeline.tryon_pipeline import SUPPORTED_MODELS
from .api_client import StudioClient
from .state import DESIGN_STEP, ORDER_STEP, STEP_NAMES, TRY_ON_STEP, Wizard
from .storage import StateRepository
from .uploads import UploadedImage


logger = logging.getLogger(__name__)

console = Console()

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


# ── CLI ───────────────────────────────────────────────────────────────────────

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dress-studio",
        description="Dress Studio: sketch a dress, try it on, order it from a tailor",
    )
    parser.add_argument("--server", default=None, help="Studio API base URL (default: API_BASE_URL)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show log output")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("status", help="Show the saved wizard state")

    design = commands.add_parser("design", help="Generate design variations from sketches")
    design.add_argument("front", help="Front sketch image")
    design.add_argument("--back", default=None, help="Back sketch image")
    design.add_argument("--description", default=None, help="Free-text design description")
    design.add_argument("--color", default=None, help="Dress color as #RRGGBB")

    select = commands.add_parser("select", help="Choose front (and back) designs by id")
    select.add_argument("ids", nargs="+", help="Variation ids, e.g. front_1 back_2")

    tryon = commands.add_parser("try-on", help="Try the selected front design on a photo")
    tryon.add_argument("person", help="Photo of the person")
    tryon.add_argument("--model", choices=SUPPORTED_MODELS, default="fal-ai")
    tryon.add_argument("--approve", action="store_true", help="Approve the result and place an order")

    tailor = commands.add_parser("tailor", help="Fill in the tailor form")
    tailor.add_argument("fields", nargs="+", metavar="FIELD=VALUE")

    commands.add_parser("order", help="Send the order to the tailor")
    commands.add_parser("reset", help="Forget everything and start over")

    return parser.parse_args(argv)


# ── Output helpers ────────────────────────────────────────────────────────────

def _short(reference: str, width: int = 60) -> str:
    if reference.startswith("data:"):
        return f"{reference.split(',', 1)[0]},... ({len(reference)} chars)"
    return reference if len(reference) <= width else reference[: width - 3] + "..."


def show_variations(wizard: Wizard) -> None:
    table = Table(title="Design variations", box=box.SIMPLE)
    table.add_column("Id", style="bold")
    table.add_column("Side")
    table.add_column("Description")
    table.add_column("Image")

    for variation in wizard.design_variations:
        selected = variation.id in (wizard.selected_front, wizard.selected_back)
        marker = "[green]✓[/green] " if selected else "  "
        image = "[yellow]placeholder[/yellow]" if variation.is_placeholder else _short(variation.image_url)
        table.add_row(marker + variation.id, variation.type, variation.description, image)

    console.print(table)


def show_status(wizard: Wizard) -> None:
    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 1))
    table.add_column("Field", style="bold", width=18)
    table.add_column("Value")

    def image_name(image: UploadedImage | None) -> str:
        return image.filename if image else "[dim](none)[/dim]"

    reachable = wizard.max_reachable_step()
    table.add_row("Step", f"{STEP_NAMES[wizard.current_step]} (can reach {STEP_NAMES[reachable]})")
    table.add_row("Front sketch", image_name(wizard.front_drawing))
    table.add_row("Back sketch", image_name(wizard.back_drawing))
    table.add_row("Description", wizard.design_description or "[dim](none)[/dim]")
    table.add_row("Color", wizard.selected_color)
    table.add_row("Front design", wizard.selected_front or "[dim](none)[/dim]")
    table.add_row("Back design", wizard.selected_back or "[dim](none)[/dim]")
    table.add_row("Person photo", image_name(wizard.person_image))
    if wizard.try_on_result:
        result = wizard.try_on_result
        table.add_row("Try-on", f"{_short(result.image_url)} at {result.timestamp:%Y-%m-%d %H:%M}")
    form = wizard.tailor_form
    table.add_row("Tailor form", "complete" if form.is_complete else "[yellow]needs name and contact[/yellow]")
    if wizard.order_id:
        table.add_row("Order", f"[green]{wizard.order_id}[/green]")

    console.print(Panel(table, title="[bold cyan]Dress Studio[/bold cyan]", border_style="cyan"))
    if wizard.design_variations:
        show_variations(wizard)


def show_try_on(reply: TryOnResponse) -> None:
    console.print(f"[green]Try-on ready[/green] via {reply.provider} ({reply.method}, {reply.processing_time})")
    console.print(f"  Image: {_short(reply.image_url)}")
    if reply.person_details:
        person = reply.person_details
        console.print(
            f"  Person: {person.gender}, {person.body_type}, age {person.age_range}, "
            f"height {person.height} [dim]({person.analysis_confidence})[/dim]"
        )
    if reply.clothing_details:
        clothing = reply.clothing_details
        console.print(
            f"  Garment: {clothing.type}, {clothing.primary_color}, {clothing.style}, "
            f"{clothing.fit} fit [dim]({clothing.analysis_confidence})[/dim]"
        )


# ── Commands ──────────────────────────────────────────────────────────────────

async def cmd_status(args, wizard: Wizard, client: StudioClient) -> None:
    show_status(wizard)


async def cmd_design(args, wizard: Wizard, client: StudioClient) -> None:
    if args.color is not None and not HEX_COLOR.match(args.color):
        raise ValueError(f"Color must look like #RRGGBB, got {args.color}")

    wizard.go_to(DESIGN_STEP)
    wizard.set_front_drawing(UploadedImage.from_path(args.front))
    wizard.set_back_drawing(UploadedImage.from_path(args.back) if args.back else None)
    if args.description is not None:
        wizard.design_description = args.description
    if args.color is not None:
        wizard.selected_color = args.color

    back = wizard.back_drawing.payload if wizard.back_drawing else None
    with console.status("Generating design variations..."):
        variations = await client.generate_designs(
            wizard.front_drawing.payload,
            back,
            description=wizard.design_description,
            color=wizard.selected_color,
        )

    wizard.set_variations(variations)
    placeholders = sum(1 for variation in variations if variation.is_placeholder)
    if placeholders:
        console.print(f"[yellow]{placeholders} variation(s) could not be rendered and use placeholders[/yellow]")
    show_variations(wizard)


async def cmd_select(args, wizard: Wizard, client: StudioClient) -> None:
    for variation_id in args.ids:
        variation = wizard.variation(variation_id)
        if variation is None:
            raise ValueError(f"Unknown design variation: {variation_id}")
        if variation.type == "front":
            wizard.select_front(variation_id)
        else:
            wizard.select_back(variation_id)

    if wizard.selected_front is not None:
        wizard.go_to(TRY_ON_STEP)
    show_variations(wizard)


async def cmd_try_on(args, wizard: Wizard, client: StudioClient) -> None:
    wizard.go_to(TRY_ON_STEP)
    design = wizard.selected_front_variation
    if design.is_placeholder:
        raise StudioError(f"{design.id} is a placeholder; generate designs again before trying on")

    wizard.set_person_image(UploadedImage.from_path(args.person))
    garment = await client.fetch_image(design.image_url, filename=design.id)

    with console.status("Generating try-on..."):
        reply = await client.try_on(wizard.person_image.payload, garment, model=args.model)

    result = wizard.set_try_on_result(reply.image_url)
    wizard.go_to(ORDER_STEP)
    show_try_on(reply)

    if args.approve:
        approval = await client.approve_design(
            ApprovalRequest(
                image_url=result.image_url,
                person_details=reply.person_details,
                clothing_details=reply.clothing_details,
                timestamp=result.timestamp.isoformat(),
            )
        )
        wizard.order_id = approval.order_id
        console.print(
            f"[green]{approval.message}[/green] Order {approval.order_id}, "
            f"estimated delivery {approval.estimated_delivery:%Y-%m-%d} ({approval.tracking_info.status})"
        )


async def cmd_tailor(args, wizard: Wizard, client: StudioClient) -> None:
    fields = {}
    for item in args.fields:
        name, sep, value = item.partition("=")
        if not sep:
            raise ValueError(f"Expected FIELD=VALUE, got {item}")
        fields[name.strip()] = value.strip()

    form = wizard.update_tailor_form(**fields)

    table = Table(title="Tailor form", box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for name, value in form.to_json_dict().items():
        table.add_row(name, value or "[dim]-[/dim]")
    console.print(table)


async def cmd_order(args, wizard: Wizard, client: StudioClient) -> None:
    wizard.go_to(ORDER_STEP)
    if not wizard.tailor_form.is_complete:
        raise ValueError("Full name and contact are required: dress-studio tailor fullName=... contact=...")

    with console.status("Sending order to the tailor..."):
        reply = await client.submit_order(wizard.order_request())

    wizard.order_id = reply.order_id
    console.print(f"[green]{reply.message}[/green] Order id: [bold]{reply.order_id}[/bold]")


async def cmd_reset(args, wizard: Wizard, client: StudioClient) -> None:
    wizard.reset()
    console.print("Wizard reset.")


COMMANDS = {
    "status": cmd_status,
    "design": cmd_design,
    "select": cmd_select,
    "try-on": cmd_try_on,
    "tailor": cmd_tailor,
    "order": cmd_order,
    "reset": cmd_reset,
}


async def run(args: argparse.Namespace, config: StudioConfig) -> int:
    repository = StateRepository.from_config(config)
    wizard = repository.load()
    exit_code = 0

    try:
        async with StudioClient(config) as client:
            await COMMANDS[args.command](args, wizard, client)
    except (StudioError, ValueError, OSError, httpx.HTTPError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        exit_code = 1
    finally:
        if args.command == "reset":
            repository.clear()
        elif not repository.save(wizard):
            console.print("[yellow]Warning: wizard state could not be saved[/yellow]")
        wizard.close()

    return exit_code


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_config()
    if args.server:
        config = config.model_copy(update={"api_base_url": args.server})

    logging.basicConfig(level=config.log_level.upper() if args.verbose else logging.WARNING)
    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())
