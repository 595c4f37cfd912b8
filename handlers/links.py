from aiogram import F, Router, types

from services.pipeline import VideoPipeline

links_router = Router()


@links_router.message(F.text)
async def handle_text(message: types.Message, pipeline: VideoPipeline):
    user = message.from_user
    username = user.username if user else None
    await pipeline.handle(message.chat.id, username, message.text)
