"""
statdash_pipeline.pipelines — End-to-end pipeline orchestrators.

    from statdash_pipeline.pipelines.indicator_sync import IndicatorSync

    report = await IndicatorSync.from_settings().run()
"""
