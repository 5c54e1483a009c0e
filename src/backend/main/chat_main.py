"""To talk to the booking assistant via terminal,
run: python -m src.backend.main.chat_main
Optional: cli.customer_id=<6-digit id> to act as a signed-in customer.
"""
import logging
import asyncio
import traceback
import hydra
from omegaconf import DictConfig

from src.backend.utils.logging import setup_logging
from src.backend.chat.service_container import ServiceContainer

logger = logging.getLogger(__name__)


class CLITester:
    def __init__(self, cfg: DictConfig):
        self.cfg = cfg
        self.services = ServiceContainer(cfg)
        self.customer_id = cfg.cli.customer_id

    async def initialize(self):
        """Async initialization method"""
        await self.services.initialize()

    async def run(self) -> None:
        print("Flight Desk assistant. Type 'quit' to exit.")
        while True:
            query = await asyncio.to_thread(input, "\nYou: ")
            if query.strip().lower() in ("quit", "exit"):
                break
            if not query.strip():
                continue
            try:
                reply = await self.services.chatbot.reply(
                    query, customer_id=self.customer_id
                )
            except Exception as e:
                logger.error(f"Assistant error: {e}")
                traceback.print_exc()
                reply = self.services.chatbot.apology
            print(f"\nAssistant: {reply}")

    async def cleanup(self) -> None:
        await self.services.cleanup()


async def chat(cfg: DictConfig) -> None:
    tester = CLITester(cfg)
    await tester.initialize()
    try:
        await tester.run()
    finally:
        await tester.cleanup()


@hydra.main(version_base=None, config_path="../../../config", config_name="config")
def main(cfg: DictConfig) -> None:
    setup_logging(cfg.logging.level)
    asyncio.run(chat(cfg))


if __name__ == "__main__":
    main()
