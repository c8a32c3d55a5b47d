"""Concurrent image pulls on a Portainer endpoint."""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Dict, List, Optional

from portainerdeploy.constants import REGISTRY_AUTH_HEADER
from portainerdeploy.errors import DeployerError
from portainerdeploy.services.resolver import registry_host


def parse_image_list(raw: Optional[str]) -> List[str]:
    """Split a comma-separated image option into unique, non-empty names."""
    if not raw:
        return []

    images: List[str] = []
    for item in raw.split(","):
        name = item.strip()
        if name and name not in images:
            images.append(name)
    return images


class ImagePullService:
    """Pulls every image at once and reports the first failure."""

    def __init__(self, client, resolver, logger, console):
        self.client = client
        self.resolver = resolver
        self.logger = logger
        self.console = console

    def pull_image(self, endpoint_id: int, image_name: str, tag: str) -> str:
        host = registry_host(image_name)
        registry_auth = self.resolver.resolve_registry_auth(host)

        headers: Optional[Dict[str, str]] = None
        if registry_auth:
            headers = {REGISTRY_AUTH_HEADER: registry_auth}

        self.logger.info("Requesting image %s:%s...", image_name, tag)
        self.client.request(
            "POST",
            f"/endpoints/{endpoint_id}/docker/images/create",
            f"Pull image {image_name}",
            params={"fromImage": image_name, "tag": tag},
            json_body={},
            headers=headers,
        )
        self.logger.info("Pulled %s.", image_name)
        return image_name

    def pull_all(self, endpoint_id: int, images: List[str], tag: str) -> List[str]:
        if not images:
            self.logger.info("No images configured, skipping pull.")
            return []

        self.console.print(f"[blue]Pulling {len(images)} image(s) with tag {tag}...[/blue]")
        executor = ThreadPoolExecutor(max_workers=len(images), thread_name_prefix="pull")
        futures = [
            executor.submit(self.pull_image, endpoint_id, image_name, tag) for image_name in images
        ]

        pulled: List[str] = []
        try:
            pending = set(futures)
            while pending:
                done, pending = wait(pending, return_when=FIRST_EXCEPTION)
                for future in done:
                    exc = future.exception()
                    if exc is not None:
                        if isinstance(exc, DeployerError):
                            raise exc
                        raise DeployerError(f"Image pull failed: {exc}") from exc
                    pulled.append(future.result())
        finally:
            # In-flight pulls are abandoned on failure; the run is about to abort.
            executor.shutdown(wait=False, cancel_futures=True)

        self.console.print("[green]Pulled all images.[/green]")
        return pulled
