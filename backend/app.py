#!/usr/bin/env python
import os

import aws_cdk as cdk

from image_resizer.image_resizer_stack import ImageResizerStack


app = cdk.App()
ImageResizerStack(app, "ImageResizerStack",
                  env=cdk.Environment(account=os.getenv(
                      'CDK_DEFAULT_ACCOUNT'), region=os.getenv('CDK_DEFAULT_REGION')),
                  )

cdk.Tags.of(app).add("project", "s3-image-resizer")

app.synth()
